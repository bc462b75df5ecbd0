"""书签注册表测试."""

from uml_docgen.data.bookmarks import BookmarkRegistry


def test_ids_are_stable_per_key():
    registry = BookmarkRegistry()

    first = registry.get_or_create_bookmark_id("Core.Terminal")
    again = registry.get_or_create_bookmark_id("Core.Terminal")
    other = registry.get_or_create_bookmark_id("Core.Breaker")

    assert first == again == "UML1"
    assert other == "UML2"
    assert len(registry) == 2


def test_availability():
    registry = BookmarkRegistry()
    bookmark_id = registry.get_or_create_bookmark_id("Core.Terminal")

    assert not registry.is_available_in_document(bookmark_id)
    assert not registry.is_available_in_document("UML99")

    registry.mark_as_available_in_document(bookmark_id)

    assert registry.is_available_in_document(bookmark_id)
    assert registry.available_count == 1
