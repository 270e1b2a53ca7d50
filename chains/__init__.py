from chains.drafting import (
    create_draft_chain, create_title_chain, create_refine_chain,
    build_draft_content, to_langchain_history
)
