"""Prompt builders for each artifact type.

Wording is free to change; the JSON shapes requested must stay in step with
src/generation/validators.py.
"""

from datetime import date

RESUME_SECTION_TYPES = ("summary", "experience", "skill", "project", "education")

MAX_ANALYSIS_CHARS = 10_000


def industry_insight_prompt(industry: str, year: int | None = None) -> str:
    year = year or date.today().year
    return (
        f"Analyze the current state of the {industry} industry as of {year}.\n\n"
        "Return a JSON object with this EXACT structure:\n"
        "{\n"
        '  "salaryRanges": [\n'
        '    {"role": "Senior Software Engineer", "min": 120000, "max": 180000,'
        ' "median": 150000, "location": "United States"}\n'
        "  ],\n"
        '  "growthRate": 15.5,\n'
        '  "demandLevel": "HIGH",\n'
        '  "topSkills": ["Python", "JavaScript", "React", "Node.js", "AWS"],\n'
        '  "marketOutlook": "POSITIVE",\n'
        '  "keyTrends": ["AI Integration", "Remote Work", "Cloud Migration",'
        ' "Cybersecurity Focus", "Green Tech"],\n'
        '  "recommendedSkills": ["Machine Learning", "Cloud Computing", "DevOps",'
        ' "Data Analysis", "Agile"]\n'
        "}\n\n"
        "Rules:\n"
        "1. Return ONLY valid JSON, no markdown and no explanations\n"
        f"2. Include at least 5 salary ranges for different roles in {industry}\n"
        "3. Include exactly 5 items each for topSkills, keyTrends and recommendedSkills\n"
        "4. growthRate is a percentage number (15.5 means 15.5%)\n"
        '5. demandLevel is exactly one of "HIGH", "MEDIUM", "LOW"\n'
        '6. marketOutlook is exactly one of "POSITIVE", "NEUTRAL", "NEGATIVE"\n'
        "7. Salaries are realistic USD figures\n"
        f"8. Base all data on {year} market conditions\n"
    )


def quiz_prompt(industry: str, skills: list[str] | None = None) -> str:
    skills = skills or []
    expertise = f" with expertise in {', '.join(skills)}" if skills else ""
    focus = f"- Focus on skills: {', '.join(skills)}\n" if skills else ""
    return (
        f"Generate 10 challenging technical interview questions for a {industry} "
        f"professional{expertise}.\n\n"
        "Requirements:\n"
        "- 10 questions total\n"
        "- Each question is multiple choice with exactly 4 options\n"
        "- Practical, real-world scenarios\n"
        "- Mix of difficulty (3 easy, 4 medium, 3 hard)\n"
        f"- Cover different aspects of {industry}\n"
        f"{focus}\n"
        "Return ONLY valid JSON in this EXACT format:\n"
        "{\n"
        '  "questions": [\n'
        "    {\n"
        '      "question": "What is the primary purpose of...",\n'
        '      "options": ["Option A", "Option B", "Option C", "Option D"],\n'
        '      "correctAnswer": "Option B",\n'
        '      "explanation": "Option B is correct because..."\n'
        "    }\n"
        "  ]\n"
        "}\n\n"
        "correctAnswer must EXACTLY match one of the options "
        "(same capitalization and spacing). Explanations are 1-2 sentences.\n"
    )


def cover_letter_prompt(
    job_title: str,
    company_name: str,
    job_description: str,
    *,
    industry: str | None = None,
    experience: int | None = None,
    skills: list[str] | None = None,
    bio: str | None = None,
) -> str:
    about = []
    if industry:
        about.append(f"- Industry: {industry}")
    if experience:
        about.append(f"- Years of Experience: {experience}")
    if skills:
        about.append(f"- Skills: {', '.join(skills)}")
    if bio:
        about.append(f"- Professional Background: {bio}")

    return (
        f"Write a professional cover letter for a {job_title} position at {company_name}.\n\n"
        "About the candidate:\n"
        + "\n".join(about)
        + "\n\nJob Description:\n"
        f"{job_description}\n\n"
        "Requirements:\n"
        "1. Professional and enthusiastic tone\n"
        "2. Highlight relevant skills and experience\n"
        "3. Show understanding of the company's needs\n"
        "4. 350-400 words\n"
        "5. Business letter formatting in markdown\n"
        "6. Align the candidate's background with the role\n\n"
        "Return ONLY the cover letter in markdown format. No explanations.\n"
    )


_SECTION_GUIDANCE = {
    "summary": (
        "professional summary",
        "- Max 3-4 sentences\n"
        "- Start with title and years of experience\n"
        "- Highlight 2-3 key strengths\n",
    ),
    "experience": (
        "work experience description",
        "- 3-5 bullet points, each starting with an action verb\n"
        "- Quantify achievements (numbers, percentages, timeframes)\n"
        "- Mention technologies and methodologies used\n",
    ),
    "skill": (
        "skills section",
        "- Group related skills together\n"
        "- List the most relevant skills first\n"
        "- Be specific about tools and languages\n",
    ),
    "project": (
        "project description",
        "- One sentence on what the project does\n"
        "- Your role, key contributions and technologies\n"
        "- Keep it to 2-3 sentences\n",
    ),
    "education": (
        "education description",
        "- Degree, major and institution\n"
        "- Relevant coursework, honors or research\n"
        "- 2-3 sentences max\n",
    ),
}


def resume_section_prompt(current: str, section_type: str, industry: str) -> str:
    label, guidance = _SECTION_GUIDANCE.get(section_type, _SECTION_GUIDANCE["summary"])
    return (
        f"As an expert resume writer, improve this {label} for a {industry} professional.\n\n"
        f'Current content:\n"{current}"\n\n'
        "Rules:\n"
        "- Use strong action verbs and quantify results\n"
        f"- Use industry-standard terminology for {industry}\n"
        "- Keep it ATS-friendly and concise\n"
        f"{guidance}\n"
        f"Return ONLY the improved {label}. No markdown. No explanations.\n"
    )


def resume_analysis_prompt(content: str, industry: str) -> str:
    body = content[:MAX_ANALYSIS_CHARS]
    if len(content) > MAX_ANALYSIS_CHARS:
        body += " ... (truncated)"
    return (
        f"Analyze this resume for a {industry} professional and provide detailed feedback.\n\n"
        f"Resume content:\n{body}\n\n"
        "Provide a JSON response with:\n"
        "{\n"
        '  "score": number (0-100, overall resume quality),\n'
        '  "strengths": ["strength1", "strength2", "strength3"],\n'
        '  "improvements": ["improvement1", "improvement2", "improvement3"],\n'
        '  "missingKeywords": ["keyword1", "keyword2", "keyword3"],\n'
        '  "atsCompatibility": number (0-100)\n'
        "}\n\n"
        "Return ONLY valid JSON. No markdown. No explanations.\n"
    )


def improvement_tip_prompt(
    industry: str | None, wrong: list[tuple[str, str, str]], total_wrong: int,
) -> str:
    """``wrong`` holds (question, correct answer, user answer) triples."""
    examples = "\n\n".join(
        f'Question: "{q}"\nCorrect Answer: "{a}"\nUser Answer: "{u}"' for q, a, u in wrong
    )
    return (
        f"The user is a {industry or 'technology'} professional and got {total_wrong} "
        "technical interview questions wrong.\n\n"
        f"Examples of questions they got wrong:\n\n{examples}\n\n"
        "Provide ONE concise improvement tip (maximum 2 sentences) naming the specific "
        "concepts to learn next. Be encouraging and actionable.\n"
    )
