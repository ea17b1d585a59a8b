from .embeddings import EmbeddingProvider, HashedBagOfWordsProvider, cosine_similarity, similarity_percent

__all__ = ["EmbeddingProvider", "HashedBagOfWordsProvider", "cosine_similarity", "similarity_percent"]
