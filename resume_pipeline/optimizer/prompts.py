"""Prompt templates for resume optimisation."""

REWRITE_SYSTEM_PROMPT = (
    "You are an expert resume writer and career coach. You transform resumes "
    "into ATS-optimized, professional documents that highlight achievements "
    "and use strong action verbs. Always output valid JSON with an "
    '"improvedText" field containing the complete rewritten resume.'
)

REWRITE_PROMPT_TEMPLATE = """Rewrite this resume to make it more professional and ATS-friendly. Follow these guidelines:

1. Use strong action verbs (Led, Managed, Achieved, Spearheaded, etc.)
2. Quantify achievements with numbers, percentages, or metrics
3. Remove weak language like "some", "most of the time", "still learning"
4. Make bullet points concise and impact-focused
5. Improve formatting and structure
6. Maintain all contact information and dates exactly as provided
7. Keep the same overall length and sections

Resume to improve:
{resume_text}

Return ONLY valid JSON in this exact format:
{{"improvedText": "the complete improved resume text here"}}"""

SCORE_SYSTEM_PROMPT = (
    "You are an ATS (Applicant Tracking System) expert and resume evaluator. "
    "Analyze resumes and provide detailed scores and actionable feedback. "
    "Always output valid JSON."
)

SCORE_PROMPT_TEMPLATE = """Analyze this resume and provide scores and specific issues:

Resume:
{resume_text}

Evaluate:
1. ATS Score (0-100): How well would this pass automated screening systems?
   - Consider: keywords, formatting, structure, quantifiable achievements
2. Keywords Score (0-10): Presence of relevant industry keywords and action verbs
3. Formatting Score (0-10): Professional structure, consistency, readability
4. Issues: Specific problems to fix (weak verbs, missing metrics, formatting issues, etc.)

Return ONLY valid JSON in this exact format:
{{
  "atsScore": 85,
  "keywordsScore": 7,
  "formattingScore": 8,
  "issues": [
    {{"type": "weak-language", "message": "Replace 'some experience' with specific metrics", "severity": "high"}},
    {{"type": "missing-achievement", "message": "Add quantifiable results to work experience", "severity": "medium"}}
  ]
}}"""


def build_rewrite_prompt(resume_text: str, max_chars: int) -> str:
    return REWRITE_PROMPT_TEMPLATE.format(resume_text=resume_text[:max_chars])


def build_score_prompt(resume_text: str, max_chars: int) -> str:
    return SCORE_PROMPT_TEMPLATE.format(resume_text=resume_text[:max_chars])
