from typing import Any

import orjson
from fastapi.responses import JSONResponse


class IndentedJSONResponse(JSONResponse):
    """JSON response pretty-printed with two-space indentation."""

    def render(self, content: Any) -> bytes:
        return orjson.dumps(content, option=orjson.OPT_INDENT_2)
