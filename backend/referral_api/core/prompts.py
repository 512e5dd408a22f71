# backend/referral_api/core/prompts.py
"""
Prompt templates used by the pipeline.
- referral_fit_check: one call per submission, returns {"score", "summary"}
- These are LangChain-friendly templates (use with ChatPromptTemplate.from_template)
"""

from __future__ import annotations

from typing import Dict, List

def _escape_braces_keep_vars(template: str, keep_vars: List[str]) -> str:
    esc = template.replace("{", "{{").replace("}", "}}")
    for v in keep_vars:
        esc = esc.replace("{{" + v + "}}", "{" + v + "}")
    return esc

PROMPTS: Dict[str, str] = {}

PROMPTS["referral_fit_check"] = _escape_braces_keep_vars(r"""
You are helping an employee decide whether to refer a candidate internally.
Analyze this candidate for the following roles: {job_ids}.

Primary Role Title: {role_title}
Candidate's "Why I'm a fit": {why_fit}
Resume Content:
---
{resume_text}
---

Provide a Fit Score (1-10) based on the overall match for these roles and a
3-bullet point summary of pros/cons.

Return STRICT JSON only:
{
  "score": 0,
  "summary": "bullet 1\nbullet 2\nbullet 3"
}
""", ["job_ids", "role_title", "why_fit", "resume_text"])

__all__ = ["PROMPTS"]
