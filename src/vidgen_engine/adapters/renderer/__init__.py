"""Composition adapters."""

from vidgen_engine.adapters.renderer.base import RendererProvider, RenderResult
from vidgen_engine.adapters.renderer.creatomate import CreatomateProvider, build_creatomate_payload
from vidgen_engine.adapters.renderer.stub import StubRendererProvider

__all__ = [
    "RendererProvider",
    "RenderResult",
    "CreatomateProvider",
    "StubRendererProvider",
    "build_creatomate_payload",
]
