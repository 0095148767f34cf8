"""
Core domain logic.

Pure, I/O-free building blocks: chunking, metadata encoding, rank fusion,
the retry state machine, decode results, prompts and the exception
hierarchy.
"""
