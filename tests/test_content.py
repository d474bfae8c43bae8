import pytest

from mcpkit.annotations import Annotations
from mcpkit.content import Content, EmbeddedResource, ImageContent, TextContent
from mcpkit.resource import BlobResourceContents, TextResourceContents
from mcpkit.role import Role


def test_content_text():
    content = Content.text("hello")
    assert content.as_text() == "hello"
    assert content.as_image() is None


def test_content_image():
    content = Content.image("data", "image/png")
    assert content.as_text() is None
    assert content.as_image() == ("data", "image/png")


def test_content_annotations_basic():
    content = Content.text("hello").with_audience([Role.USER]).with_priority(0.5)
    assert content.audience() == [Role.USER]
    assert content.priority() == 0.5


def test_content_annotations_order_independence():
    content1 = Content.text("hello").with_audience([Role.USER]).with_priority(0.5)
    content2 = Content.text("hello").with_priority(0.5).with_audience([Role.USER])
    assert content1.audience() == content2.audience()
    assert content1.priority() == content2.priority()


def test_content_annotations_overwrite():
    content = (
        Content.text("hello")
        .with_audience([Role.USER])
        .with_priority(0.5)
        .with_audience([Role.ASSISTANT])
        .with_priority(0.8)
    )
    assert content.audience() == [Role.ASSISTANT]
    assert content.priority() == pytest.approx(0.8)


def test_content_annotations_image():
    content = Content.image("data", "image/png").with_audience([Role.USER]).with_priority(0.5)
    assert content.audience() == [Role.USER]
    assert content.priority() == 0.5


def test_content_annotations_preservation():
    content = Content.text("hello").with_audience([Role.USER]).with_priority(0.5)
    assert isinstance(content.value, TextContent)
    ann = content.value.annotations
    assert ann is not None
    assert ann.audience == [Role.USER]
    assert ann.priority == 0.5


def test_invalid_priority():
    with pytest.raises(ValueError, match="Priority must be between 0.0 and 1.0"):
        Content.text("hello").with_priority(1.5)


def test_unannotated():
    content = Content.text("hello").with_audience([Role.USER]).with_priority(0.5)
    unannotated = content.unannotated()
    assert unannotated.audience() is None
    assert unannotated.priority() is None
    assert unannotated.as_text() == "hello"


def test_partial_annotations():
    content = Content.text("hello").with_priority(0.5)
    assert content.audience() is None
    assert content.priority() == 0.5

    content = Content.text("hello").with_audience([Role.USER])
    assert content.audience() == [Role.USER]
    assert content.priority() is None


def test_with_methods_leave_original_untouched():
    original = Content.text("hello")
    original.with_priority(0.3)
    assert original.priority() is None


def test_embedded_text():
    content = Content.embedded_text("file:///a.txt", "body")
    assert content.value == EmbeddedResource(
        resource=TextResourceContents(uri="file:///a.txt", text="body", mime_type="text")
    )
    assert content.value.get_text() == "body"


def test_get_text_of_blob_is_empty():
    embedded = EmbeddedResource(resource=BlobResourceContents(uri="file:///a", blob="AAAA"))
    assert embedded.get_text() == ""


def test_text_wire_form():
    assert Content.text("hello").to_dict() == {"type": "text", "text": "hello"}


def test_image_wire_form():
    assert Content.image("data", "image/png").to_dict() == {
        "type": "image",
        "data": "data",
        "mimeType": "image/png",
    }


@pytest.mark.parametrize(
    "content",
    [
        Content.text("hello").with_audience([Role.USER]).with_priority(0.5),
        Content.image("data", "image/png"),
        Content.embedded_text("file:///a.txt", "body"),
        Content.resource(BlobResourceContents(uri="file:///b", blob="AAAA")).with_priority(1.0),
    ],
)
def test_round_trip(content):
    assert Content.from_dict(content.to_dict()) == content


def test_kind():
    assert [c.kind for c in (Content.text("t"), Content.image("d", "image/png"))] == [
        "text",
        "image",
    ]


def test_from_dict_unknown_type():
    with pytest.raises(ValueError):
        Content.from_dict({"type": "video", "data": "x"})


def test_from_dict_missing_field():
    with pytest.raises(ValueError):
        Content.from_dict({"type": "image", "data": "x"})


def test_image_content_direct():
    image = ImageContent(data="d", mime_type="image/png", annotations=Annotations(priority=0.1))
    assert ImageContent.from_dict(image.to_dict()) == image
    assert "type" not in image.to_dict()