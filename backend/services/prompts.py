"""Prompt templates for the study-artifact generators.

Templates take already-truncated document text; see ``truncate_text``.
"""

SUMMARY_PROMPT = """You are an academic summarization assistant.

Summarize the content below into a clean, well-structured summary.

Formatting rules:
- Plain text only. Do NOT use markdown.
- Do NOT use asterisks (*), hashes (#) or other special formatting.
- Write section titles in ALL CAPS on their own line, e.g. OVERVIEW, KEY POINTS, CONCLUSION.
- Use simple dashes (-) for bullet points.
- Use a formal academic tone; be concise but complete.
- Do not invent or exaggerate information and avoid repetition.
- Keep a logical flow from beginning to conclusion.

Return only the sectioned summary in plain text.

Content to summarize:
\"\"\"
{text}
\"\"\""""


EXPLAIN_PROMPT = """You are a helpful AI learning assistant. Using the document content below, answer the student's question clearly and thoroughly.

Document content:
{text}

Student's question: {question}

Give a clear, detailed answer. If the answer is not in the document, say so, then offer whatever relevant context you can."""


FLASHCARDS_PROMPT = """You are an expert educator. Create exactly {count} study flashcards from the document content below.

Document content:
{text}

Return ONLY a valid JSON array of objects with "question" and "answer" string fields. No markdown, no commentary, only the JSON array.
Example: [{{"question": "What is X?", "answer": "X is..."}}]"""


QUIZ_PROMPT = """You are an expert educator. Write exactly {count} multiple-choice quiz questions from the document content below.

Document content:
{text}

Return ONLY a valid JSON array of objects with these exact fields:
- "question": string
- "options": array of exactly 4 strings
- "correctAnswer": number, the 0-3 index of the correct option
- "explanation": string, a brief explanation of why that option is correct

No markdown, no commentary, only the JSON array."""
