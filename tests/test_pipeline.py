"""Tests for decoding, page classification, OCR fallback and the document pipeline."""

from __future__ import annotations

import io

import pytest
from openpyxl import load_workbook

from pdfconvert import (
    OCR_FAILED_TEXT,
    ConversionOptions,
    ConversionProgress,
    DecodeError,
    OcrError,
    PageClass,
    PageRangeError,
    PageResult,
    PageSource,
    ProgressReporter,
    classify,
    convert,
    decode,
    get_page,
    process_page,
)

from .conftest import LONG_TEXT, SECOND_LONG_TEXT, FakeOcrEngine, make_pdf


def _collect():
    events: list[ConversionProgress] = []
    return events, events.append


def _rows(xlsx: bytes) -> list[tuple]:
    wb = load_workbook(io.BytesIO(xlsx))
    return list(wb["Content"].iter_rows(values_only=True))


# =========================================================================
# 1. Decoder
# =========================================================================


class TestDecode:
    def test_page_count(self, native_pdf):
        with decode(native_pdf) as doc:
            assert doc.page_count == 2

    def test_empty_bytes_raise(self):
        with pytest.raises(DecodeError):
            decode(b"")

    def test_garbage_bytes_raise(self):
        with pytest.raises(DecodeError):
            decode(b"this is definitely not a pdf document")

    def test_encrypted_pdf_raises(self, encrypted_pdf):
        with pytest.raises(DecodeError, match="password"):
            decode(encrypted_pdf)


class TestGetPage:
    def test_native_text_extracted(self, native_pdf):
        with decode(native_pdf) as doc:
            assert get_page(doc, 1).native_text == LONG_TEXT
            assert get_page(doc, 2).native_text == SECOND_LONG_TEXT

    def test_blank_page_has_empty_text(self, mixed_pdf):
        with decode(mixed_pdf) as doc:
            assert get_page(doc, 2).native_text == ""

    @pytest.mark.parametrize("page_number", [0, -1, 3])
    def test_out_of_range_raises(self, native_pdf, page_number):
        with decode(native_pdf) as doc:
            with pytest.raises(PageRangeError):
                get_page(doc, page_number)

    def test_page_range_error_is_index_error(self, native_pdf):
        with decode(native_pdf) as doc:
            with pytest.raises(IndexError):
                get_page(doc, 99)

    def test_render_scale_doubles_pixels(self, mixed_pdf):
        with decode(mixed_pdf) as doc:
            page = get_page(doc, 1)
            one = page.render(1.0)
            two = page.render(2.0)
        assert two.size[0] == pytest.approx(one.size[0] * 2, abs=2)
        assert two.mode == "RGB"


# =========================================================================
# 2. Classifier
# =========================================================================


class TestClassify:
    def test_long_text_has_text(self):
        assert classify(LONG_TEXT) is PageClass.HAS_TEXT

    def test_empty_needs_ocr(self):
        assert classify("") is PageClass.NEEDS_OCR

    def test_exactly_threshold_needs_ocr(self):
        assert classify("x" * 20) is PageClass.NEEDS_OCR
        assert classify("x" * 21) is PageClass.HAS_TEXT

    def test_surrounding_whitespace_ignored(self):
        assert classify("   " + "x" * 20 + "\n\n") is PageClass.NEEDS_OCR

    def test_custom_threshold(self):
        assert classify("short", threshold=3) is PageClass.HAS_TEXT


# =========================================================================
# 3. Page processor
# =========================================================================


class TestProcessPage:
    def test_native_page_skips_render_and_ocr(self, native_pdf, fake_engine, monkeypatch):
        def _no_render(*args, **kwargs):
            raise AssertionError("render must not be called for text pages")

        monkeypatch.setattr("pdfconvert.pages.render", _no_render)
        with decode(native_pdf) as doc:
            result = process_page(doc, 1, fake_engine)

        assert result == PageResult(1, LONG_TEXT, PageSource.NATIVE)
        assert fake_engine.calls == []

    def test_scanned_page_renders_and_ocrs_once(self, mixed_pdf, monkeypatch):
        import pdfconvert.pages as pages_mod

        render_calls = []
        real_render = pages_mod.render

        def _spy(page, scale):
            render_calls.append(scale)
            return real_render(page, scale)

        monkeypatch.setattr(pages_mod, "render", _spy)
        engine = FakeOcrEngine(responses=["  Scanned Text \n\x0c"])
        with decode(mixed_pdf) as doc:
            result = process_page(doc, 2, engine)

        assert result == PageResult(2, "Scanned Text", PageSource.OCR)
        assert render_calls == [2.0]
        assert len(engine.calls) == 1
        assert engine.calls[0]["language"] == "eng"

    def test_ocr_failure_becomes_sentinel(self, mixed_pdf, failing_engine):
        with decode(mixed_pdf) as doc:
            result = process_page(doc, 2, failing_engine)
        assert result == PageResult(2, OCR_FAILED_TEXT, PageSource.OCR_FAILED)
        assert result.text == "[OCR failed]"

    def test_options_forwarded(self, mixed_pdf, fake_engine):
        options = ConversionOptions(render_scale=1.0, ocr_language="deu")
        with decode(mixed_pdf) as doc:
            process_page(doc, 2, fake_engine, options=options)
            full = get_page(doc, 2).render(1.0)
        assert fake_engine.calls[0]["language"] == "deu"
        assert fake_engine.calls[0]["size"] == full.size

    def test_high_threshold_forces_ocr(self, native_pdf, fake_engine):
        options = ConversionOptions(text_threshold=10_000)
        with decode(native_pdf) as doc:
            result = process_page(doc, 1, fake_engine, options=options)
        assert result.source is PageSource.OCR
        assert len(fake_engine.calls) == 1

    def test_ocr_progress_stays_within_page_band(self, scanned_pdf, fake_engine):
        events, sink = _collect()
        reporter = ProgressReporter(sink)
        with decode(scanned_pdf) as doc:
            process_page(doc, 2, fake_engine, reporter=reporter)

        percents = [e.percent for e in events]
        assert percents == sorted(percents)
        # Page 2 of 3 owns the 35..65 slice of the 6..95 page range.
        assert min(percents) == 35
        assert max(percents) == 65
        assert any(e.status.startswith("OCR: recognizing text") for e in events)

    def test_out_of_range_page_raises(self, native_pdf, fake_engine):
        with decode(native_pdf) as doc:
            with pytest.raises(PageRangeError):
                process_page(doc, 3, fake_engine)


class TestPageResult:
    def test_rejects_page_zero(self):
        with pytest.raises(ValueError):
            PageResult(0, "x", PageSource.NATIVE)

    def test_is_immutable(self):
        result = PageResult(1, "x", PageSource.NATIVE)
        with pytest.raises(AttributeError):
            result.text = "y"  # type: ignore[misc]


# =========================================================================
# 4. Progress reporter
# =========================================================================


class TestProgressReporter:
    def test_never_goes_backwards(self):
        events, sink = _collect()
        reporter = ProgressReporter(sink)
        reporter.emit("a", 40)
        reporter.emit("b", 10)
        reporter.emit("c", 55.6)
        assert [e.percent for e in events] == [40, 40, 56]

    def test_clamps_to_bounds(self):
        reporter = ProgressReporter()
        assert reporter.emit("over", 250).percent == 100
        assert reporter.last_percent == 100

    def test_works_without_sink(self):
        assert ProgressReporter().emit("x", 5) == ConversionProgress("x", 5)


# =========================================================================
# 5. Document pipeline
# =========================================================================


class TestConvert:
    def test_mixed_document_scenario(self, mixed_pdf, fake_engine):
        output = convert(mixed_pdf, base_name="mixed", engine=fake_engine)

        assert output.pages == (
            PageResult(1, LONG_TEXT, PageSource.NATIVE),
            PageResult(2, "Scanned Text", PageSource.OCR),
        )
        assert _rows(output.spreadsheet_bytes) == [
            ("Page", "Text"),
            (1, LONG_TEXT),
            (2, "Scanned Text"),
        ]
        assert output.document_filename == "mixed.docx"
        assert output.spreadsheet_filename == "mixed.xlsx"

    def test_all_native_document_never_ocrs(self, native_pdf, fake_engine):
        output = convert(native_pdf, engine=fake_engine)
        assert fake_engine.calls == []
        assert all(p.source is PageSource.NATIVE for p in output.pages)

    def test_native_document_does_not_build_ocr_engine(self, native_pdf, monkeypatch):
        def _boom(**kwargs):
            raise AssertionError("OCR engine must not be created")

        monkeypatch.setattr("pdfconvert.conversion.create_ocr_engine", _boom)
        output = convert(native_pdf)
        assert len(output.pages) == 2

    def test_every_scanned_page_ocrd_exactly_once(self, scanned_pdf, fake_engine):
        output = convert(scanned_pdf, engine=fake_engine)
        assert len(fake_engine.calls) == 3
        assert [p.page_number for p in output.pages] == [1, 2, 3]
        assert all(p.source is PageSource.OCR for p in output.pages)

    def test_page_sequence_matches_page_count(self, fake_engine):
        texts = [LONG_TEXT if i % 2 else "" for i in range(7)]
        output = convert(make_pdf(texts), engine=fake_engine)
        assert [p.page_number for p in output.pages] == list(range(1, 8))
        assert len(_rows(output.spreadsheet_bytes)) == 8

    def test_ocr_failure_does_not_fail_document(self, mixed_pdf):
        engine = FakeOcrEngine(responses=[OcrError("boom")])
        events, sink = _collect()
        output = convert(mixed_pdf, sink, engine=engine)

        assert output.pages[1] == PageResult(2, "[OCR failed]", PageSource.OCR_FAILED)
        assert events[-1] == ConversionProgress("Done", 100)
        assert _rows(output.spreadsheet_bytes)[2] == (2, "[OCR failed]")

    def test_progress_is_monotonic_and_ends_done(self, scanned_pdf, fake_engine):
        events, sink = _collect()
        convert(scanned_pdf, sink, engine=fake_engine)

        percents = [e.percent for e in events]
        assert percents == sorted(percents)
        assert all(0 <= p <= 100 for p in percents)
        assert events[0].status == "Reading PDF..."
        assert events[-1] == ConversionProgress("Done", 100)
        assert [e.status for e in events].count("Done") == 1

    def test_decode_failure_emits_no_done(self, fake_engine):
        events, sink = _collect()
        with pytest.raises(DecodeError):
            convert(b"%PDF-garbage that will not parse", sink, engine=fake_engine)
        assert all(e.status != "Done" for e in events)
        assert fake_engine.calls == []

    def test_same_input_same_bytes(self, mixed_pdf):
        first = convert(mixed_pdf, engine=FakeOcrEngine())
        second = convert(mixed_pdf, engine=FakeOcrEngine())
        assert first.document_bytes == second.document_bytes
        assert first.spreadsheet_bytes == second.spreadsheet_bytes

    def test_write_to(self, mixed_pdf, fake_engine, tmp_path):
        output = convert(mixed_pdf, base_name="report", engine=fake_engine)
        docx_path, xlsx_path = output.write_to(tmp_path / "out")
        assert docx_path.name == "report.docx"
        assert xlsx_path.read_bytes() == output.spreadsheet_bytes
