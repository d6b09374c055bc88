from userjs_tools.services.comment_stripper import (
    CommentStripper,
    LexState,
    iter_stripped_lines,
    strip_comments,
)


def test_plain_text_is_unchanged():
    text = 'user_pref("a", 1);\nuser_pref("b", true);\n'
    assert strip_comments(text) == text


def test_plain_text_loses_only_blank_lines():
    text = 'one\n\n   \ntwo\n\t\nthree'
    assert strip_comments(text) == 'one\ntwo\nthree'


def test_line_comment_is_removed():
    assert strip_comments('user_pref("a", 1); // note\n') == 'user_pref("a", 1); \n'


def test_comment_only_lines_disappear():
    text = '// header\nuser_pref("a", 1);\n// footer\n'
    assert strip_comments(text) == 'user_pref("a", 1);\n'


def test_multiline_block_comment():
    """A block comment over several lines leaves only the code after it"""
    assert strip_comments('/* line1\nline2 */\nkept();') == 'kept();'


def test_code_around_block_comment_joins():
    assert strip_comments('a /* one\ntwo */ b\n') == 'a  b\n'


def test_double_slash_inside_string():
    text = 'user_pref("a//b", 1);'
    assert strip_comments(text) == text


def test_block_markers_inside_strings():
    text = 'user_pref("x", "/* not a comment */");\nuser_pref(\'y\', \'*/\');\n'
    assert strip_comments(text) == text


def test_escaped_quote_does_not_end_string():
    text = '"before \\" after" // comment'
    assert strip_comments(text) == '"before \\" after" '


def test_escaped_backslash_ends_before_quote():
    text = '"path\\\\" // comment\n'
    assert strip_comments(text) == '"path\\\\" \n'


def test_string_spans_lines():
    text = '"multi\n/*string" /**/ shown //*hidden*/\n'
    assert strip_comments(text) == '"multi\n/*string"  shown \n'


def test_slash_star_slash_opens_a_comment():
    assert strip_comments('/*/ hidden*/ shown\n') == ' shown\n'


def test_line_comment_ends_at_physical_line():
    """A trailing backslash does not continue a line comment"""
    assert strip_comments('// \\\nshown\n') == 'shown\n'


def test_unterminated_block_comment_swallows_rest():
    assert strip_comments('kept();\n/* open\nuser_pref("a", 1);\n') == 'kept();\n'


def test_unterminated_string_is_flushed():
    assert strip_comments('a();\n"open // not comment\nstill string') == \
        'a();\n"open // not comment\nstill string'


def test_single_slash_and_division():
    text = 'x = a / b;\n'
    assert strip_comments(text) == text


def test_strip_is_idempotent():
    text = (
        '/* header */\n'
        'user_pref("a", "http://example.com"); // trailing\n'
        '  \n'
        'user_pref(\'b\', "it\\"s"); /* inline */ user_pref("c", 1);\n'
        '/* unterminated\n'
    )
    once = strip_comments(text)
    assert strip_comments(once) == once


def test_crlf_terminators_survive():
    assert strip_comments('a(); // x\r\n\r\nb();\r\n') == 'a(); \r\nb();\r\n'


def test_lines_are_lazy_and_restartable():
    lines = iter_stripped_lines('a\n// b\nc\n')
    assert next(lines) == 'a\n'
    assert list(lines) == ['c\n']
    assert list(iter_stripped_lines('a\n// b\nc\n')) == ['a\n', 'c\n']


def test_stripper_state_after_pass():
    stripper = CommentStripper('x /* open')
    assert list(stripper.iter_lines()) == ['x ']
    assert stripper.state == LexState.BLOCK_COMMENT
    # A second pass starts over from the normal state
    assert list(stripper.iter_lines()) == ['x ']
