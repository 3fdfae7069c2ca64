from bolgen.document_extractor.classifier import PageClassifier
from bolgen.document_extractor.parser import DocumentParser
from bolgen.document_extractor.pipeline import BOLPipeline, BOLRequest, BOLResult
from bolgen.document_extractor.splitter import DocumentSplitter, format_pages

__all__ = [
    "BOLPipeline",
    "BOLRequest",
    "BOLResult",
    "DocumentParser",
    "DocumentSplitter",
    "PageClassifier",
    "format_pages",
]
