"""
Tests for the PDF renderer: page sequencing, metadata, borders, failures.
"""
from io import BytesIO

import pytest
from reportlab.lib import colors

from pdf_renderer import PDFRenderer, parse_color
from project_manager import PortfolioConfig, load_config, load_projects
from conftest import make_project, make_record, write_image


class RecordingCanvas:
    """Stands in for reportlab's Canvas and records every call."""

    def __init__(self, output, pagesize=None, **kwargs):
        self.output = output
        self.pagesize = pagesize
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
        return record

    def names(self):
        return [name for name, _, _ in self.calls]

    def first(self, name):
        return next(args for n, args, _ in self.calls if n == name)


def render_recorded(config, projects):
    renderer = PDFRenderer(config, BytesIO(), canvas_class=RecordingCanvas)
    assert renderer.render(projects)
    return renderer, renderer.canvas


def images_for(tmp_path, count, size=(400, 300), border=False):
    records = []
    for i in range(count):
        name = f"img{i}.jpg"
        write_image(tmp_path / name, size)
        record = make_record(name, *size, border=border)
        record.path = tmp_path / name
        records.append(record)
    return records


class TestParseColor:

    def test_hex(self):
        assert parse_color('#CCCCCC').hexval() == colors.HexColor('#CCCCCC').hexval()

    def test_named(self):
        assert parse_color('red') is colors.red

    def test_unknown(self):
        assert parse_color('not-a-color') is colors.black
        assert parse_color('#zz') is colors.black
        assert parse_color(None) is colors.black

    @pytest.mark.parametrize("name", ["Color", "toColor", "HexColor"])
    def test_module_attributes_that_are_not_colors(self, name):
        assert parse_color(name) is colors.black

    def test_non_color_border_name_renders(self, tmp_path):
        config = PortfolioConfig.from_dict({"imageBorder": {"enabled": True, "color": "Color"}})
        project = make_project(images=images_for(tmp_path, 1, border=True), layout=[{"type": "full", "content": ["img0.jpg"]}])

        _, canvas = render_recorded(config, [project])

        [stroke] = canvas.first('setStrokeColor')
        assert stroke is colors.black


class TestRender:

    def test_writes_pdf_bytes(self, portfolio_dir):
        config = load_config(portfolio_dir)
        projects = load_projects(portfolio_dir, config)
        output = BytesIO()

        assert PDFRenderer(config, output).render(projects)
        assert output.getvalue().startswith(b'%PDF')

    def test_web_resolution_output(self, portfolio_dir):
        config = PortfolioConfig.from_dict({"dpi": 150})
        projects = load_projects(portfolio_dir, config)
        output = BytesIO()
        assert PDFRenderer(config, output).render(projects)
        assert output.getvalue().startswith(b'%PDF')

    def test_metadata_from_default_config(self, tmp_path):
        config = load_config(tmp_path)
        _, canvas = render_recorded(config, [])

        assert canvas.first('setTitle') == ('Portfolio',)
        assert canvas.first('setAuthor') == ('Artist',)
        assert canvas.first('setSubject') == ('Creative Portfolio',)
        assert canvas.first('setCreator') == ('PDF Portfolio Generator',)

    def test_page_size(self, config):
        _, canvas = render_recorded(config, [])
        assert canvas.pagesize == config.page_dimensions()

    def test_cover_only(self, config):
        renderer, canvas = render_recorded(config, [])
        assert canvas.names().count('showPage') == 1
        assert canvas.names()[-1] == 'save'
        assert renderer.page_count == 1

    def test_deferred_break_between_default_projects(self, tmp_path, config):
        first = make_project(title='One', images=images_for(tmp_path, 3))
        second = make_project(title='Two', images=images_for(tmp_path, 3))
        renderer, canvas = render_recorded(config, [first, second])

        # cover, info, gallery(2), [gallery(1)], info, gallery(2), [gallery(1)]
        assert renderer.page_count == 7
        assert canvas.names().count('showPage') == 7
        assert canvas.names()[-2:] == ['showPage', 'save']
        assert canvas.names().count('drawImage') == 6

        # The second project's title is drawn on a fresh page
        names = canvas.names()
        title_index = next(i for i, (n, args, _) in enumerate(canvas.calls) if n == 'drawString' and args[2] == 'Two')
        assert 'showPage' in names[title_index - 3:title_index]

    def test_explicit_layout_breaks_after_every_page(self, tmp_path, config):
        images = images_for(tmp_path, 1)
        project = make_project(images=images, layout=[
            {"type": "full", "content": ["img0.jpg"]},
            {"type": "full", "content": ["missing.jpg"]},
        ])
        renderer, canvas = render_recorded(config, [project])

        assert canvas.names().count('showPage') == 3
        assert canvas.names().count('drawImage') == 1
        assert renderer.page_count == 3

    def test_border_only_for_flagged_images(self, tmp_path):
        config = PortfolioConfig.from_dict({"imageBorder": {"enabled": False, "width": 2, "color": "#112233"}})
        images = images_for(tmp_path, 2)
        images[1].border = True
        project = make_project(images=images, layout=[{"type": "gallery", "content": ["img0.jpg", "img1.jpg"]}])

        _, canvas = render_recorded(config, [project])

        rects = [args for n, args, _ in canvas.calls if n == 'rect']
        assert len(rects) == 1
        assert canvas.first('setLineWidth') == (2,)
        [stroke] = canvas.first('setStrokeColor')
        assert stroke.hexval() == colors.HexColor('#112233').hexval()

    def test_image_placed_in_pdf_coordinates(self, tmp_path, config):
        [image] = images_for(tmp_path, 1, size=(1000, 1000))
        project = make_project(images=[image], layout=[{"type": "full", "content": ["img0.jpg"]}])
        renderer, canvas = render_recorded(config, [project])

        _, (source, x, y), kwargs = next(c for c in canvas.calls if c[0] == 'drawImage')
        geo = renderer.planner.geometry
        assert kwargs['height'] == pytest.approx(geo.content_height)
        assert y == pytest.approx(geo.margin)
        assert x == pytest.approx(geo.margin + (geo.content_width - geo.content_height) / 2)

    def test_failed_image_draw_does_not_abort(self, tmp_path, config, caplog):
        class FailingImageCanvas(RecordingCanvas):
            def drawImage(self, *args, **kwargs):
                raise OSError("cannot decode")

        images = images_for(tmp_path, 2, border=True)
        project = make_project(images=images, layout=[{"type": "gallery", "content": ["img0.jpg", "img1.jpg"]}])
        renderer = PDFRenderer(config, BytesIO(), canvas_class=FailingImageCanvas)

        assert renderer.render([project])
        assert "Error adding image img0.jpg" in caplog.text
        assert "Error adding image img1.jpg" in caplog.text
        assert 'rect' not in renderer.canvas.names()

    def test_last_page_kept_when_its_images_fail(self, tmp_path, config):
        class FailingImageCanvas(RecordingCanvas):
            def drawImage(self, *args, **kwargs):
                raise OSError("file removed")

        project = make_project(images=images_for(tmp_path, 3))
        renderer = PDFRenderer(config, BytesIO(), canvas_class=FailingImageCanvas)

        assert renderer.render([project])
        # cover, info, gallery(2), gallery(1)
        assert renderer.page_count == 4
        assert renderer.canvas.names().count('showPage') == renderer.page_count

    def test_last_deferred_page_written_to_pdf(self, tmp_path, config):
        project = make_project(images=images_for(tmp_path, 1))
        (tmp_path / "img0.jpg").unlink()
        output = BytesIO()

        renderer = PDFRenderer(config, output)
        assert renderer.render([project])
        assert renderer.page_count == 3
        assert output.getvalue().startswith(b'%PDF')

    def test_unwritable_output_fails(self, tmp_path, config, caplog):
        renderer = PDFRenderer(config, tmp_path / "missing-dir" / "out.pdf")
        assert not renderer.render([])
        assert "Could not save the PDF" in caplog.text
