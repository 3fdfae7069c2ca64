from bolgen.renderer.pdf_renderer import PDFRenderer

__all__ = ["PDFRenderer"]
