from __future__ import annotations

from domain.diagnostics import Diagnostic


class ExcalidrawRenderError(Exception):
    pass


class StructuralError(ExcalidrawRenderError):
    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        details = "; ".join(f"{item.path}: {item.fix}" for item in self.diagnostics)
        super().__init__(f"Document has structural errors (L1): {details}")


class RenderError(ExcalidrawRenderError):
    pass


class NoVisibleElementsError(RenderError):
    def __init__(self) -> None:
        super().__init__("No visible elements to render")
