from pygments.style import Style
from pygments.token import Keyword, Name, Number, Punctuation, String


class LogStyle(Style):
    """Colors for the JSON rendering of log record extras"""

    styles = {
        Name.Tag: "#5f87af",
        String: "#87af5f",
        String.Double: "#87af5f",
        Number: "#d7875f",
        Keyword.Constant: "#af87d7",
        Punctuation: "#808080",
    }
