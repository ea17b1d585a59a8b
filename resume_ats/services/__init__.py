from .pipeline import AtsPipeline, get_default_pipeline, optimize_document, validate_document

__all__ = ["AtsPipeline", "get_default_pipeline", "optimize_document", "validate_document"]
