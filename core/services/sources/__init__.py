from core.services.sources.service import SourceDocumentService

__all__ = ["SourceDocumentService"]
