"""PolyGlot RAG: multilingual question answering over an uploaded document."""

__version__ = "0.1.0"
