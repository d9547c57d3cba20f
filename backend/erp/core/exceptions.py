"""
统一错误响应

所有错误都渲染为 {"message": ...}，校验错误额外带 {"errors": {字段路径: [消息]}}
字段路径用点号连接，如 moves.0.product_id
"""

from typing import Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

UNAUTHENTICATED = "Unauthenticated."
UNAUTHORIZED = "This action is unauthorized."


class ValidationFailed(Exception):
    """业务校验失败（存在性、唯一性、跨字段规则等），返回 422"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(self.message)

    @property
    def message(self) -> str:
        for messages in self.errors.values():
            if messages:
                return messages[0]
        return "The given data was invalid."

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls({field: [message]})


def action_failed(message: str) -> HTTPException:
    """非法的状态流转"""
    return HTTPException(status_code=422, detail=message)


def _attribute(loc) -> str:
    return ".".join(str(p) for p in loc).replace("_", " ")


def _format_error(error: dict, loc) -> str:
    attr = _attribute(loc)
    err_type = error.get("type", "")
    ctx = error.get("ctx") or {}

    if err_type == "missing":
        return f"The {attr} field is required."
    if err_type in ("enum", "literal_error"):
        return f"The selected {attr} is invalid."
    if err_type == "string_too_long":
        return f"The {attr} field must not be greater than {ctx.get('max_length')} characters."
    if err_type == "string_too_short":
        if ctx.get("min_length") == 1:
            return f"The {attr} field is required."
        return f"The {attr} field must be at least {ctx.get('min_length')} characters."
    if err_type == "too_short":
        return f"The {attr} field must have at least {ctx.get('min_length')} items."
    if err_type in ("int_parsing", "int_type", "int_from_float"):
        return f"The {attr} field must be an integer."
    if err_type in ("float_parsing", "float_type", "decimal_parsing", "decimal_type"):
        return f"The {attr} field must be a number."
    if err_type in ("bool_parsing", "bool_type"):
        return f"The {attr} field must be true or false."
    if err_type in ("string_type",):
        return f"The {attr} field must be a string."
    if err_type in ("list_type",):
        return f"The {attr} field must be an array."
    if err_type.startswith("date") or err_type.startswith("datetime"):
        return f"The {attr} field must be a valid date."
    if err_type in ("greater_than_equal", "greater_than"):
        limit = ctx.get("ge", ctx.get("gt"))
        return f"The {attr} field must be at least {limit}."
    if err_type in ("less_than_equal", "less_than"):
        limit = ctx.get("le", ctx.get("lt"))
        return f"The {attr} field must not be greater than {limit}."
    if err_type == "value_error":
        msg = error.get("msg", "")
        if "email" in msg.lower():
            return f"The {attr} field must be a valid email address."
        return msg.removeprefix("Value error, ")
    return error.get("msg", "The given data was invalid.")


def format_validation_errors(raw_errors) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in raw_errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        key = ".".join(str(p) for p in loc) or "body"
        errors.setdefault(key, []).append(_format_error(error, loc or ["body"]))
    return errors


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        headers = getattr(exc, "headers", None)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        failed = ValidationFailed(errors)
        return JSONResponse(status_code=422, content={"message": failed.message, "errors": errors})

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return JSONResponse(status_code=422, content={"message": exc.message, "errors": exc.errors})
