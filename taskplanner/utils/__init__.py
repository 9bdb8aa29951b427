from taskplanner.utils.json_utils import extract_json_object, to_prompt_json
from taskplanner.utils.logging_setup import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "extract_json_object", "setup_logging", "to_prompt_json"]
