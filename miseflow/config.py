import os
from typing import Tuple

from pydantic import BaseModel

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)


class ExtractorSettings(BaseModel):
    timeout: float = 14.0  # seconds, per fetch
    user_agent: str = USER_AGENT
    max_recipe_links: int = 5
    line_limit: int = 80
    max_transcript_steps: int = 18
    max_transcript_ingredients: int = 30
    max_ingredient_hints: int = 20
    caption_languages: Tuple[str, ...] = ("en", "en-US", "en-GB")

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, **overrides) -> "ExtractorSettings":
        values = {}
        if os.environ.get("MISEFLOW_TIMEOUT"):
            values["timeout"] = float(os.environ["MISEFLOW_TIMEOUT"])
        if os.environ.get("MISEFLOW_USER_AGENT"):
            values["user_agent"] = os.environ["MISEFLOW_USER_AGENT"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
