import asyncio
import base64

import pytest

from bgremover.core.exceptions import EncodingError, InferenceError
from bgremover.services import SelectedFile
from bgremover.ui import REMOVAL_FAILED_MESSAGE, RemovalController, ViewState, render_page


@pytest.fixture
def controller(fake_remover):
    return RemovalController(remover=fake_remover)


class TestSelectFile:
    """Tests for choosing an image."""

    def test_starts_idle(self, controller):
        assert controller.view_state is ViewState.IDLE
        assert not controller.state.can_trigger

    def test_select_makes_ready(self, controller, cat_file):
        state = controller.select_file(cat_file)

        assert state.view_state is ViewState.READY
        assert state.preview_url.startswith("/previews/")
        assert len(controller.previews) == 1

    def test_reselect_releases_previous_preview(self, controller, cat_file, sample_image_bytes):
        first_url = controller.select_file(cat_file).preview_url
        second = SelectedFile(content=sample_image_bytes, mime_type="image/png", filename="red.png")
        second_url = controller.select_file(second).preview_url

        assert first_url != second_url
        assert controller.previews.get(first_url.rsplit("/", 1)[-1]) is None
        assert controller.previews.get(second_url.rsplit("/", 1)[-1]).content == sample_image_bytes
        assert len(controller.previews) == 1

    @pytest.mark.asyncio
    async def test_select_clears_result(self, controller, cat_file):
        controller.select_file(cat_file)
        await controller.trigger()
        assert controller.view_state is ViewState.SUCCEEDED

        state = controller.select_file(cat_file)

        assert state.view_state is ViewState.READY
        assert state.result is None
        assert state.error is None

    def test_close_releases_preview(self, controller, cat_file):
        controller.select_file(cat_file)
        controller.close()
        assert len(controller.previews) == 0


class TestTrigger:
    """Tests for running a removal."""

    @pytest.mark.asyncio
    async def test_end_to_end_result(self, controller, fake_remover, cat_file, cat_jpeg_bytes):
        controller.select_file(cat_file)
        state = await controller.trigger()

        assert state.view_state is ViewState.SUCCEEDED
        assert state.result == "data:image/png;base64,iVBORtest"
        assert state.is_loading is False
        assert fake_remover.calls == [
            (base64.b64encode(cat_jpeg_bytes).decode(), "image/jpeg")
        ]

    @pytest.mark.asyncio
    async def test_without_file_is_noop(self, controller, fake_remover):
        state = await controller.trigger()

        assert state.view_state is ViewState.IDLE
        assert fake_remover.calls == []

    @pytest.mark.asyncio
    async def test_single_request_in_flight(self, gated_remover, cat_file):
        controller = RemovalController(remover=gated_remover)
        controller.select_file(cat_file)

        first = asyncio.create_task(controller.trigger())
        await asyncio.sleep(0)
        assert controller.view_state is ViewState.LOADING

        second = await controller.trigger()
        assert second.is_loading is True

        gated_remover.release.set()
        state = await first

        assert len(gated_remover.calls) == 1
        assert state.view_state is ViewState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_inference_failure(self, cat_file):
        remover_error = InferenceError("No image data found in the API response.")
        controller = RemovalController(remover=_failing(remover_error))
        controller.select_file(cat_file)

        state = await controller.trigger()

        assert state.view_state is ViewState.FAILED
        assert state.error == REMOVAL_FAILED_MESSAGE
        assert state.is_loading is False
        assert state.result is None

    @pytest.mark.asyncio
    async def test_encoder_failure(self, fake_remover, cat_file):
        async def broken_encoder(file):
            raise EncodingError("bad", reason=EncodingError.MALFORMED_REPRESENTATION)

        controller = RemovalController(remover=fake_remover, encoder=broken_encoder)
        controller.select_file(cat_file)

        state = await controller.trigger()

        assert state.error == REMOVAL_FAILED_MESSAGE
        assert fake_remover.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_error_clears_loading(self, cat_file):
        controller = RemovalController(remover=_failing(RuntimeError("boom")))
        controller.select_file(cat_file)

        state = await controller.trigger()

        assert state.view_state is ViewState.FAILED
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, fake_remover, cat_file):
        fake_remover.error = RuntimeError("flaky")
        controller = RemovalController(remover=fake_remover)
        controller.select_file(cat_file)
        assert (await controller.trigger()).view_state is ViewState.FAILED

        fake_remover.error = None
        state = await controller.trigger()

        assert state.view_state is ViewState.SUCCEEDED
        assert state.error is None
        assert len(fake_remover.calls) == 2

    @pytest.mark.asyncio
    async def test_outcome_for_replaced_file_is_dropped(self, gated_remover, cat_file, sample_image_bytes):
        controller = RemovalController(remover=gated_remover)
        controller.select_file(cat_file)
        task = asyncio.create_task(controller.trigger())
        await asyncio.sleep(0)

        controller.select_file(SelectedFile(content=sample_image_bytes, mime_type="image/png"))
        gated_remover.release.set()
        await task

        assert controller.view_state is ViewState.READY
        assert controller.state.result is None

    @pytest.mark.asyncio
    async def test_listeners_see_loading_then_result(self, controller, cat_file):
        seen = []
        controller.subscribe(lambda previous, current: seen.append(current.view_state))

        controller.select_file(cat_file)
        await controller.trigger()

        assert seen == [ViewState.READY, ViewState.LOADING, ViewState.SUCCEEDED]


class TestDownload:
    """Tests for the download affordance."""

    def test_unavailable_before_result(self, controller, cat_file):
        assert controller.download() is None
        controller.select_file(cat_file)
        assert controller.download() is None

    @pytest.mark.asyncio
    async def test_download_png(self, fake_remover, cat_file, png_result_base64):
        fake_remover.result = png_result_base64
        controller = RemovalController(remover=fake_remover)
        controller.select_file(cat_file)
        await controller.trigger()

        image = controller.download()

        assert image.filename == "background-removed.png"
        assert image.content_type == "image/png"
        assert image.content == base64.b64decode(png_result_base64)
        assert controller.view_state is ViewState.SUCCEEDED


class TestRenderPage:
    """Tests for the HTML view of each state."""

    def test_idle(self, controller):
        html = render_page(controller.state)
        assert 'accept="image/*"' in html
        assert "Your processed image will appear here" in html
        assert "<button type=\"submit\" disabled>" in html
        assert "Download" not in html

    def test_ready(self, controller, cat_file):
        html = render_page(controller.select_file(cat_file))
        assert controller.state.preview_url in html
        assert "<button type=\"submit\">Remove Background</button>" in html

    @pytest.mark.asyncio
    async def test_loading_refreshes(self, gated_remover, cat_file):
        controller = RemovalController(remover=gated_remover)
        controller.select_file(cat_file)
        task = asyncio.create_task(controller.trigger())
        await asyncio.sleep(0)

        html = render_page(controller.state, refresh_seconds=3)

        assert '<meta http-equiv="refresh" content="3">' in html
        assert "Removing background..." in html
        assert "Processing..." in html

        gated_remover.release.set()
        await task

    @pytest.mark.asyncio
    async def test_failed(self, cat_file):
        controller = RemovalController(remover=_failing(RuntimeError("boom")))
        controller.select_file(cat_file)
        await controller.trigger()

        html = render_page(controller.state)
        assert "An Error Occurred" in html
        assert REMOVAL_FAILED_MESSAGE in html

    @pytest.mark.asyncio
    async def test_succeeded_has_download_link(self, controller, cat_file):
        controller.select_file(cat_file)
        await controller.trigger()

        html = render_page(controller.state)
        assert 'href="data:image/png;base64,iVBORtest"' in html
        assert 'download="background-removed.png"' in html


def _failing(error: Exception):
    class Failing:
        async def remove_background(self, base64_image, mime_type):
            raise error

    return Failing()
