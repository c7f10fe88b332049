from dorc.PARSERS.properties_parser import PropertiesParser

def test_parse_from_string():
    content = """
    KEY1=VALUE1
    KEY2 = VALUE2
    # This is a comment
    ! So is this
    KEY3="VALUE3" # Trailing comment
    KEY4='VALUE4'
    key.five: five
    url=http://host:8080/path
    """
    props = PropertiesParser.parse_from_string(content)
    assert props['KEY1'] == 'VALUE1'
    assert props['KEY2'] == 'VALUE2'
    assert props['KEY3'] == 'VALUE3'
    assert props['KEY4'] == 'VALUE4'
    assert props['key.five'] == 'five'
    assert props['url'] == 'http://host:8080/path'
    assert len(props) == 6

def test_parse_file(tmp_path):
    path = tmp_path / "build.properties"
    path.write_text("version=1.2\n")
    assert PropertiesParser.parse(str(path)) == {'version': '1.2'}
