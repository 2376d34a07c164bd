from common.utils.json_model import ImmutableJsonModel, JsonModel
from common.utils.msgspec import SerializationError, decode_json, encode_json, encode_json_str
from common.utils.utils import (
    blocking_run_async,
    cached_classmethod,
    deep_merge,
    get_logger,
    get_now,
    is_dict,
    local_day_bounds,
    use_context_var,
)

__all__ = [
    "ImmutableJsonModel",
    "JsonModel",
    "SerializationError",
    "blocking_run_async",
    "cached_classmethod",
    "decode_json",
    "deep_merge",
    "encode_json",
    "encode_json_str",
    "get_logger",
    "get_now",
    "is_dict",
    "local_day_bounds",
    "use_context_var",
]
