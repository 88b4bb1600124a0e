"""Split a command line into tokens, honouring double quotes and escaped spaces."""

QUOTE = '"'
ESCAPE = "\\"
SEPARATOR = " "


def parse(line: str) -> list[str]:
    """Tokenize a command line.

    A double quote opens a quoted token only at a token boundary and is
    dropped from the output. Inside quotes, spaces do not split; an
    unescaped quote closes the token (emitting it even when empty).
    Outside quotes, an unescaped space ends the current token.

    A backslash suppresses the split or close caused by the following
    space or quote, but is itself kept in the token. Typing a, backslash,
    space, b gives one four-character token, not "a b".

    Whatever has accumulated when the input runs out is emitted as the
    last token, even if it is empty, so parse('') == [''] and
    parse('cat ') == ['cat', '']. An unterminated quote runs to the end
    of the line. Never raises.
    """
    tokens: list[str] = []
    accumulated = ""
    in_quotes = False
    previous = SEPARATOR

    for ch in line:
        if ch == QUOTE and not accumulated:
            in_quotes = True
        elif ch == QUOTE and previous != ESCAPE and in_quotes:
            tokens.append(accumulated)
            accumulated = ""
            in_quotes = False
        elif ch == SEPARATOR and previous != ESCAPE and not in_quotes:
            if accumulated:
                tokens.append(accumulated)
            accumulated = ""
        else:
            accumulated += ch
            previous = ch

    tokens.append(accumulated)
    return tokens
