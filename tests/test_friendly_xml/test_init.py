"""Test module for friendly_xml package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import friendly_xml

    # Assert
    assert friendly_xml is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import friendly_xml

    # Assert
    assert friendly_xml.__version__ == "0.1.0"


def test_package_all_exports() -> None:
    """Test that __all__ names resolve."""
    # Arrange & Act
    import friendly_xml

    # Assert
    for name in friendly_xml.__all__:
        assert hasattr(friendly_xml, name), name


def test_level_one_functions() -> None:
    """Test the simple function layer end to end."""
    # Arrange
    from friendly_xml import get_parse_problems, get_scopes, to_xml, try_build

    xml = "<Root><Item id=\"a\"/><Item id=\"b\"/></Root>"

    # Act
    document = try_build(xml)

    # Assert
    assert get_parse_problems(xml) == []
    assert [e.key for e in document.collections[0].entries] == ["a", "b"]
    assert to_xml(document) == xml
    assert len(get_scopes(xml)) == 3
