"""greader HTTP layer.

Example:
    >>> from greader.http import RequestExecutor, encode_form
    >>> encode_form({"i": "tag:1", "ac": "edit"})
    'i=tag:1&ac=edit'
"""

from greader.http.client import FormParams, RequestExecutor, encode_form

__all__ = [
    "FormParams",
    "RequestExecutor",
    "encode_form",
]
