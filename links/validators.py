# hackernews-comments-api -- links/validators.py
#
# Permission is hereby granted, free of charge, to any person obtaining
# a copy of this software and associated documentation files (the
# "Software"), to deal in the Software without restriction, including
# without limitation the rights to use, copy, modify, merge, publish,
# distribute, sublicense, and/or sell copies of the Software, and to
# permit persons to whom the Software is furnished to do so, subject to
# the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE
# LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION
# WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

import re

from links.errors import ValidationError


# ASCII digits only; str.isdigit() and '\d' would also accept e.g. Arabic-Indic digits.
INT_ID_RE = re.compile(r'[0-9]+')

# largest value an AutoField primary key can hold
MAX_ID = 2**31 - 1


def parse_int_safe(value):
    """Return `value` as an int if it is a string of decimal digits, else None.

    No sign, no surrounding whitespace, nothing but digits.
    """
    if not isinstance(value, str) or not INT_ID_RE.fullmatch(value):
        return None
    return int(value)


def apply_range_constraints(name, value, minimum, maximum):
    if value < minimum or value > maximum:
        raise ValidationError(
            "'{}' argument value '{}' is outside the valid range of '{}' to '{}'."
            .format(name, value, minimum, maximum))
    return value


def apply_skip_constraints(value):
    if value < 0:
        raise ValidationError("'skip' argument value '{}' must not be negative.".format(value))
    return value
