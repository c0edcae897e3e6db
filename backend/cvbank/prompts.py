"""Prompt templates for CV enrichment."""

POSITION_PROMPT = """You are a CV analyzer. Extract the current or most recent job title/position from the following CV/resume text.

Look for:
- Current position or job title
- Most recent role if multiple positions are listed
- Professional title (e.g., "Software Engineer", "Marketing Manager", "Data Scientist")
- If no clear position is found, return "Not Specified"

Respond with ONLY the job title/position in 2-5 words maximum. Do not include company name, dates, or any other information.

CV Content:
{cv_text}

Position/Job Title:"""

SUMMARY_PROMPT = """You are a professional CV analyzer. Analyze the following CV/resume and create a concise, well-structured summary in 150-200 words.

The summary should include:
1. Professional background and experience level
2. Key technical and soft skills
3. Education highlights
4. Notable achievements or accomplishments
5. Career focus or specialization

Write in a clear, professional tone. Use bullet points or short paragraphs.

CV Content:
{cv_text}

Please provide the summary now:"""
