import asyncio
import json

import pytest

from carousel.errors import PayloadTooLargeError, RequestValidationError
from carousel.models import SlideFailure, SlideSuccess, UploadResult
from carousel.orchestrator import SUGGEST_REDUCE, SUGGEST_RETURN_URLS, CarouselGenerator, parse_request


class FakeRenderer:
    """Renders instantly (or after a per-index delay); ``bad`` backgrounds fail."""

    def __init__(self, delays=None, payload="data:image/png;base64,AAAA"):
        self.delays = delays or {}
        self.payload = payload
        self.calls = []

    async def render(self, background, slide, width, height, index):
        self.calls.append((background, width, height, index))
        await asyncio.sleep(self.delays.get(index, 0))
        filename = f"carousel-slide-{index + 1}.png"
        if background == "bad":
            return SlideFailure(error="Failed to download image: HTTP 404 Not Found", filename=filename)
        return SlideSuccess(base64=self.payload, filename=filename)


class FakeUploader:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.uploads = []

    async def upload(self, data_uri, filename, access_token, folder_id=None):
        self.uploads.append((filename, access_token, folder_id))
        if filename in self.fail_on:
            return UploadResult(success=False, error="quota exceeded")
        return UploadResult(
            success=True,
            file_id=f"id-{filename}",
            web_view_link=f"https://drive.example.com/view/{filename}",
            web_content_link=f"https://drive.example.com/download/{filename}",
        )


def _body(n=1, **extra):
    body = {
        "backgrounds": [f"https://img.example.com/{i}.jpg" for i in range(n)],
        "slides": [{"title": f"Slide {i}"} for i in range(n)],
    }
    body.update(extra)
    return body


def _run(generator, body):
    return asyncio.run(generator.run(parse_request(body)))


# --- parse_request ---

def test_parse_request_applies_defaults():
    request = parse_request(_body(2))
    assert request.width == 1080
    assert request.height == 1080
    assert request.upload_to_drive is False
    assert request.return_urls is False
    assert request.slides[0].title == "Slide 0"
    assert request.slides[0].text_align == "center"
    assert request.slides[0].text_color == "#FFFFFF"


def test_parse_request_reads_camel_case_fields():
    request = parse_request(_body(1, width=1080, height=1350, uploadToDrive=True, driveToken="tok",
                                  driveFolderId="folder", returnUrls=True))
    assert request.height == 1350
    assert request.upload_to_drive is True
    assert request.drive_token == "tok"
    assert request.drive_folder_id == "folder"
    assert request.return_urls is True


@pytest.mark.parametrize("body,message", [
    ({"slides": [{}]}, "backgrounds array is required and must not be empty"),
    ({"backgrounds": [], "slides": [{}]}, "backgrounds array is required and must not be empty"),
    ({"backgrounds": "https://x/a.jpg", "slides": [{}]}, "backgrounds array is required and must not be empty"),
    ({"backgrounds": ["https://x/a.jpg"]}, "slides array is required and must not be empty"),
    ({"backgrounds": ["https://x/a.jpg", "https://x/b.jpg"], "slides": [{}]},
     "backgrounds and slides arrays must have the same length"),
    (_body(1, width=199), "Width and height must be between 200 and 4000 pixels"),
    (_body(1, height=4001), "Width and height must be between 200 and 4000 pixels"),
    (_body(1, width="wide"), "width must be an integer"),
    (_body(1, height=10.5), "height must be an integer"),
])
def test_parse_request_rejects(body, message):
    with pytest.raises(RequestValidationError) as info:
        parse_request(body)
    assert str(info.value) == message
    assert info.value.status_code == 400


def test_parse_request_accepts_dimension_bounds():
    request = parse_request(_body(1, width=200, height=4000))
    assert (request.width, request.height) == (200, 4000)


def test_parse_request_rejects_bad_slide():
    with pytest.raises(RequestValidationError, match="Invalid slide at index 1"):
        parse_request({"backgrounds": ["a", "b"], "slides": [{}, {"textAlign": "justify"}]})


@pytest.mark.parametrize("field,attr,default", [
    ("textColor", "text_color", "#FFFFFF"),
    ("fontFamily", "font_family", "Arial"),
    ("textAlign", "text_align", "center"),
])
@pytest.mark.parametrize("blank", [None, ""])
def test_parse_request_null_styling_falls_back_to_default(field, attr, default, blank):
    request = parse_request({"backgrounds": ["https://img/a.jpg"], "slides": [{"title": "Hi", field: blank}]})
    assert getattr(request.slides[0], attr) == default


def test_parse_request_rejects_non_object_body():
    with pytest.raises(RequestValidationError):
        parse_request(["not", "an", "object"])


# --- CarouselGenerator.run ---

def test_one_result_per_slide_in_input_order():
    renderer = FakeRenderer(delays={0: 0.05, 1: 0.0, 2: 0.02})
    result = _run(CarouselGenerator(renderer, FakeUploader()), _body(3))
    filenames = [image["filename"] for image in result.payload["images"]]
    assert filenames == ["carousel-slide-1.png", "carousel-slide-2.png", "carousel-slide-3.png"]
    assert sorted(call[3] for call in renderer.calls) == [0, 1, 2]


def test_failures_are_reported_alongside_successes():
    body = _body(3)
    body["backgrounds"][1] = "bad"
    payload = _run(CarouselGenerator(FakeRenderer(), FakeUploader()), body).payload

    assert payload["success"] is True
    assert [i["filename"] for i in payload["images"]] == ["carousel-slide-1.png", "carousel-slide-3.png"]
    assert payload["failed"] == [{
        "error": "Failed to download image: HTTP 404 Not Found",
        "filename": "carousel-slide-2.png",
        "success": False,
    }]
    assert payload["stats"]["totalSlides"] == 3
    assert payload["stats"]["successful"] == 2
    assert payload["stats"]["failed"] == 1
    assert payload["stats"]["dimensions"] == {"width": 1080, "height": 1080}
    assert isinstance(payload["stats"]["generationTimeMs"], int)


def test_response_omits_empty_sections():
    result = _run(CarouselGenerator(FakeRenderer(), FakeUploader()), _body(1))
    assert "failed" not in result.payload
    assert "driveUrls" not in result.payload
    assert result.payload["images"][0] == {
        "base64": "data:image/png;base64,AAAA",
        "filename": "carousel-slide-1.png",
        "success": True,
    }
    assert json.loads(result.body) == result.payload


def test_upload_requires_token():
    uploader = FakeUploader()
    result = _run(CarouselGenerator(FakeRenderer(), uploader), _body(2, uploadToDrive=True))
    assert uploader.uploads == []
    assert "driveUrls" not in result.payload


def test_uploads_only_successful_slides():
    uploader = FakeUploader()
    body = _body(2, uploadToDrive=True, driveToken="tok", driveFolderId="folder")
    body["backgrounds"][0] = "bad"
    payload = _run(CarouselGenerator(FakeRenderer(), uploader), body).payload

    assert uploader.uploads == [("carousel-slide-2.png", "tok", "folder")]
    assert payload["driveUrls"] == [{
        "success": True,
        "fileId": "id-carousel-slide-2.png",
        "webViewLink": "https://drive.example.com/view/carousel-slide-2.png",
        "webContentLink": "https://drive.example.com/download/carousel-slide-2.png",
    }]
    assert payload["images"][0]["base64"].startswith("data:image/png")


def test_return_urls_replaces_image_data_when_all_uploads_succeed():
    body = _body(2, uploadToDrive=True, driveToken="tok", returnUrls=True)
    payload = _run(CarouselGenerator(FakeRenderer(), FakeUploader()), body).payload
    assert payload["images"] == [
        {"filename": "carousel-slide-1.png", "success": True,
         "driveUrl": "https://drive.example.com/download/carousel-slide-1.png"},
        {"filename": "carousel-slide-2.png", "success": True,
         "driveUrl": "https://drive.example.com/download/carousel-slide-2.png"},
    ]


def test_return_urls_falls_back_to_full_data_when_an_upload_fails():
    body = _body(2, uploadToDrive=True, driveToken="tok", returnUrls=True)
    uploader = FakeUploader(fail_on={"carousel-slide-2.png"})
    payload = _run(CarouselGenerator(FakeRenderer(), uploader), body).payload
    assert all("base64" in image for image in payload["images"])
    assert payload["driveUrls"][1] == {"success": False, "error": "quota exceeded"}


def test_oversized_response_is_rejected_with_suggestion():
    renderer = FakeRenderer(payload="data:image/png;base64," + "A" * 6_000_001)
    generator = CarouselGenerator(renderer, FakeUploader(), max_response_bytes=6_000_000)
    with pytest.raises(PayloadTooLargeError) as info:
        _run(generator, _body(1))
    err = info.value
    assert err.status_code == 413
    body = err.to_dict()
    assert body["success"] is False
    assert body["suggestion"] == SUGGEST_REDUCE
    assert "Maximum allowed: 6MB" in body["error"]
    assert body["stats"]["totalSlides"] == 1


def test_oversized_response_with_uploads_suggests_return_urls():
    renderer = FakeRenderer(payload="data:image/png;base64," + "A" * 200)
    generator = CarouselGenerator(renderer, FakeUploader(), max_response_bytes=100)
    with pytest.raises(PayloadTooLargeError) as info:
        _run(generator, _body(1, uploadToDrive=True, driveToken="tok"))
    assert info.value.suggestion == SUGGEST_RETURN_URLS


def test_return_urls_keeps_response_small():
    renderer = FakeRenderer(payload="data:image/png;base64," + "A" * 5000)
    generator = CarouselGenerator(renderer, FakeUploader(), max_response_bytes=2000)
    result = _run(generator, _body(2, uploadToDrive=True, driveToken="tok", returnUrls=True))
    assert len(result.body) <= 2000
