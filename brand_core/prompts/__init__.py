"""系统提示词加载工具。

按 Agent 类型与语言(locale) 从 prompts/<locale> 目录读取 system prompt 模板，
模板中的 {brand_context} 占位符由 build_system_prompt 填充。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent
BRAND_CONTEXT_PLACEHOLDER = "{brand_context}"

_TEMPLATES = {
    "brand-assistant": "brand_assistant_system.md",
}


@lru_cache(maxsize=None)
def load_system_prompt(agent_type: str = "brand-assistant", locale: str = "en") -> str:
    """根据 Agent 类型和语言加载系统提示词模板文本。"""

    fname = PROMPTS_DIR / locale / _TEMPLATES[agent_type]
    return fname.read_text(encoding="utf-8").rstrip("\n")
