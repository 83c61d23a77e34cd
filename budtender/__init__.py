"""
GreenLeaf AI budtender: strain embeddings, retrieval and streamed chat.
"""

__version__ = "0.1.0"
