JOB_EXTRACTION_PROMPT = """
Analyze this Job Description and extract its details. Infer a field if it is not stated clearly.

Return ONLY strict JSON:
{
  "title": "<job title>",
  "department": "<department>",
  "location": "<location>",
  "type": "<employment type, e.g. Full-time>",
  "skills": ["<required skill>", "..."]
}
"""


RESUME_ANALYSIS_PROMPT = """
Perform a Deep-Match Analysis of this resume against the following role:
- Title: {title}
- Key Skills: {skills}
{description}

You must extract the following strictly:
1. candidateName: the most prominent name at the top. If not found, use a short, professional placeholder.
2. matchScore: a number from 0-100 indicating how well they fit the Key Skills and Title (Overall Score).
3. currentRole: their latest job title.
4. experienceYears: number of years of experience.
5. jdMatchScore: 0-100 score based purely on the text overlap and semantic match with the Job Description.
6. qualificationMatchScore: 0-100 score based on the relevance of their education and certifications.
7. resumeMatchScore: 0-100 score based on the quality, structure and clarity of the resume itself.
8. candidateRecordScore: optional 0-100 score for the track record shown by past roles and achievements.
9. jdMatchReason, qualificationMatchReason, resumeMatchReason, candidateRecordReason: one concise sentence each explaining the matching score.
10. analysis: a short paragraph summarizing the fit.
11. skillsFound: array of skills present in the resume.
12. deepAnalysis: an object containing
    - executiveSummary: 2-3 sentences on the candidate's fit.
    - strengths: array of 3 key strengths.
    - weaknesses: array of 3 potential weaknesses.
    - skillsMatched: hard skills found in both the role and the resume.
    - missingSkills: skills from the role that are missing.
    - experienceRelevance: how their past roles match the job requirements.
    - experienceMatchLevel: "Low", "Medium" or "High".
    - roleSimilarity: "Low", "Medium" or "High".
    - interviewQuestions: array of 5 technical and behavioral questions tailored to their gaps.
    - culturalFit: a brief assessment of likely cultural fit.

IMPORTANT: Return ONLY valid JSON. No markdown code blocks.
"""


def render_resume_prompt(title: str, skills: list[str], description: str | None, max_chars: int) -> str:
    desc = f"- Job Description: {description[:max_chars]}..." if description else ""
    return RESUME_ANALYSIS_PROMPT.format(title=title, skills=", ".join(skills), description=desc)
