"""Orchestrate one compilation from the input tables to the output document.

The stages run in a fixed order:

1. parse both tables and resolve the target language;
2. compare the source hash with the cache record and stop early when the
   inputs are unchanged and the previous document is still present;
3. expand markup, shape in-scope strings and register their glyphs;
4. reuse the cached UV table when the glyph set is unchanged, otherwise
   rasterize, pack and write a new atlas;
5. write the document, then the cache record.

The cache record is written last so that an interrupted build never looks
up to date on the next run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from glyphsmith.adapters.preview import write_previews
from glyphsmith.adapters.rasterizer import MsdfgenClient
from glyphsmith.adapters.shaping import HarfBuzzShaper
from glyphsmith.core.arena import Arena
from glyphsmith.core.atlas import AtlasBuilder, GlyphUV, RasterizationClient, write_png
from glyphsmith.core.cache import CacheRecord, CacheStore
from glyphsmith.core.config import CompilerConfig
from glyphsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from glyphsmith.core.hashing import source_hash
from glyphsmith.core.layout import RenderedPage, RenderedString, Shaper, TypesetGlyph, shape_page
from glyphsmith.core.logging import PipelineLogger
from glyphsmith.core.markup import MarkupMachine, PageText
from glyphsmith.core.registry import GlyphRegistry
from glyphsmith.core.serializer import write_document
from glyphsmith.core.tables import ContentCatalog, load_catalog
from glyphsmith.fonts.catalog import FontCatalog


STATUS_UP_TO_DATE = "up-to-date"
STATUS_REUSED_ATLAS = "reused-atlas"
STATUS_REBUILT = "rebuilt"


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Summary of one :meth:`TextCompiler.compile` call."""

    status: str
    language: str
    source_hash: int
    document_path: Path
    atlas_path: Path
    strings: int = 0
    pages: int = 0
    glyphs: int = 0
    atlas_size: int | None = None
    previews: tuple[Path, ...] = ()

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_UP_TO_DATE


class TextCompiler:
    """Compile the configured tables for one language.

    ``shaper``, ``rasterizer`` and ``font_catalog`` default to the HarfBuzz,
    msdfgen and directory-scan implementations, created on first use so that
    the up-to-date fast path never touches fonts or external tools.
    """

    def __init__(
        self,
        config: CompilerConfig,
        *,
        shaper: Shaper | None = None,
        rasterizer: RasterizationClient | None = None,
        font_catalog: FontCatalog | None = None,
        emitter: DiagnosticEmitter | None = None,
        logger: PipelineLogger | None = None,
    ) -> None:
        self.config = config
        self.emitter = ensure_emitter(emitter)
        self.logger = logger or PipelineLogger()
        self._shaper = shaper
        self._rasterizer = rasterizer
        self._fonts = font_catalog

    # ----------------------------------------------------------- collaborators

    @property
    def fonts(self) -> FontCatalog:
        if self._fonts is None:
            self._fonts = FontCatalog.scan(self.config.fonts_dir)
        return self._fonts

    def _shaper_for(self, catalog: ContentCatalog) -> Shaper:
        if self._shaper is None:
            fonts = self.fonts
            fonts.require_faces(catalog.faces())
            self._shaper = HarfBuzzShaper(fonts)
        return self._shaper

    def _rasterizer_for(self) -> RasterizationClient:
        if self._rasterizer is None:
            self._rasterizer = MsdfgenClient(self.config.msdfgen, self.fonts, self.config.atlas)
        return self._rasterizer

    # ------------------------------------------------------------------ stages

    def render(
        self, catalog: ContentCatalog, language_index: int, registry: GlyphRegistry
    ) -> tuple[RenderedString, ...]:
        """Expand markup for every string and shape the in-scope ones.

        Out-of-scope strings are still paginated so that their markup is
        validated, but they are never shaped.
        """
        machine = MarkupMachine(
            catalog, strict=self.config.strict_markup, emitter=self.emitter
        )
        rendered: Arena[RenderedString] = Arena("rendered-strings")
        pages: Arena[RenderedPage] = Arena("rendered-pages")
        scratch: Arena[TypesetGlyph] = Arena("typeset-glyphs")

        with self.logger.progress("Shaping strings", total=len(catalog.strings)) as advance:
            for entry in catalog.strings:
                text = entry.text(language_index)
                if not entry.in_scope:
                    machine.paginate(text, key=entry.key)
                    advance(1)
                    continue

                shaper = self._shaper_for(catalog)

                def _shape(page: PageText, entry=entry, shaper=shaper) -> None:
                    pages.push(
                        shape_page(
                            shaper, registry, page, entry.width, entry.height, scratch=scratch
                        )
                    )

                with pages.scope():
                    machine.paginate(text, key=entry.key, on_page=_shape)
                    rendered.push(
                        RenderedString(
                            key=entry.key,
                            width=entry.width,
                            height=entry.height,
                            pages=pages.view(),
                        )
                    )
                advance(1)

        self.logger.debug(
            "Arena high water: %d page(s), %d glyph(s)", pages.high_water, scratch.high_water
        )
        return rendered.view()

    def _preview_fonts(self, registry: GlyphRegistry) -> dict[int, Path]:
        """Map glyph identities to font files, when a font catalog is loaded."""
        if self._fonts is None:
            return {}
        paths: dict[int, Path] = {}
        for record in registry:
            entry = self._fonts.by_face(record.face)
            if entry is not None:
                paths[record.identity] = entry.path
        return paths

    def compile(self, language: str) -> CompileResult:
        """Run the pipeline for ``language`` and return what was done."""
        config = self.config
        catalog, styles_raw, strings_raw = load_catalog(config.styles, config.strings)
        language_index = catalog.language_index(language)
        digest = source_hash(styles_raw, strings_raw, language)

        store = CacheStore(config.cache_file)
        record = store.load()
        if (
            record is not None
            and record.source_hash == digest
            and config.document_path.exists()
            and config.atlas_path.exists()
        ):
            self.emitter.event("cache_hit", {"source_hash": digest})
            return CompileResult(
                status=STATUS_UP_TO_DATE,
                language=language,
                source_hash=digest,
                document_path=config.document_path,
                atlas_path=config.atlas_path,
                glyphs=record.glyph_count,
            )

        registry = GlyphRegistry()
        rendered = self.render(catalog, language_index, registry)
        glyph_set_hash = registry.identity_hash()

        # Outputs are about to change; the record comes back once both are written.
        store.discard()

        atlas_size: int | None = None
        uvs: tuple[GlyphUV, ...]
        if (
            record is not None
            and record.glyph_set_hash == glyph_set_hash
            and record.glyph_count == len(registry)
            and config.atlas_path.exists()
        ):
            uvs = record.uvs
            status = STATUS_REUSED_ATLAS
            self.emitter.event("atlas_reused", {"glyphs": len(registry)})
        else:
            builder = AtlasBuilder(self._rasterizer_for(), config.atlas, self.logger)
            bake = builder.bake(registry.sorted_records())
            write_png(bake.image, config.atlas_path)
            uvs = bake.uvs
            atlas_size = bake.size
            status = STATUS_REBUILT
            self.emitter.event(
                "atlas_baked",
                {"glyphs": len(registry), "size": bake.size, "path": str(config.atlas_path)},
            )

        write_document(config.document_path, rendered, registry, uvs)
        self.emitter.event(
            "document_written",
            {"path": str(config.document_path), "strings": len(rendered)},
        )

        store.save(CacheRecord(source_hash=digest, glyph_set_hash=glyph_set_hash, uvs=uvs))

        previews: list[Path] = []
        if config.debug_pages:
            previews = write_previews(
                rendered, config.output_dir, font_paths=self._preview_fonts(registry)
            )

        return CompileResult(
            status=status,
            language=language,
            source_hash=digest,
            document_path=config.document_path,
            atlas_path=config.atlas_path,
            strings=len(rendered),
            pages=sum(len(entry.pages) for entry in rendered),
            glyphs=len(registry),
            atlas_size=atlas_size,
            previews=tuple(previews),
        )


def compile_language(
    config: CompilerConfig,
    language: str,
    *,
    emitter: DiagnosticEmitter | None = None,
    logger: PipelineLogger | None = None,
) -> CompileResult:
    """Compile ``language`` with the default collaborators."""
    return TextCompiler(config, emitter=emitter, logger=logger).compile(language)


__all__ = [
    "STATUS_REBUILT",
    "STATUS_REUSED_ATLAS",
    "STATUS_UP_TO_DATE",
    "CompileResult",
    "TextCompiler",
    "compile_language",
]
