from prompts.manager import get_prompt_template, get_prompt_text, force_reload_prompts
