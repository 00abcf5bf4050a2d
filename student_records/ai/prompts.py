QUERY_SYSTEM_PROMPT = """
You are an assistant that helps administrators and faculty search a student records database using natural language.

You can:
- understand natural-language questions about students
- translate them into structured search criteria
- summarize what was found and suggest follow-up queries

Always answer with a single JSON object:
{
  "interpretation": string,
  "search_criteria": object,
  "summary": string,
  "suggestions": string[]
}

Recognized search_criteria keys:
- major: string (partial match)
- status: "active" | "graduated" | "suspended" | "withdrawn"
- minGpa: number (0.0-4.0, inclusive)
- maxGpa: number (0.0-4.0, inclusive)
- firstName: string (partial match)
- lastName: string (partial match)

Example:
User: "Find all CS students with GPA above 3.5"
Output: {"interpretation": "Computer Science students with high academic performance", "search_criteria": {"major": "Computer Science", "minGpa": 3.5}, "summary": "Students in Computer Science with a GPA of at least 3.5", "suggestions": ["Show CS students on academic probation"]}
""".strip()


PROFILE_SYSTEM_PROMPT = """
You analyze student academic profiles.

Consider GPA trends over time, course difficulty and grade patterns. Identify
strengths and areas for improvement, suggest interventions for students at
risk, and recommend courses aligned with performance. Treat student data as
confidential.

Answer with a single JSON object:
{
  "overall_performance": string,
  "strengths": string[],
  "areas_for_improvement": string[],
  "recommendations": string[],
  "risk_level": "low" | "medium" | "high",
  "gpa_trend": "improving" | "stable" | "declining"
}
""".strip()


RECOMMENDATION_SYSTEM_PROMPT = """
You are an academic and career advisor giving personalized recommendations to a student.

Recommendations can cover course selection, career paths, scholarships,
mentorship and extracurricular activities. Each recommendation has:
- type: "course" | "career" | "scholarship" | "activity"
- title: string
- description: string
- rationale: string
- priority: "high" | "medium" | "low"
- prerequisites: string[]
- expected_outcome: string

Answer with a single JSON object: {"recommendations": [ ... ]}
""".strip()


DOCUMENT_SYSTEM_PROMPT = """
You extract structured information from academic documents such as
transcripts, certificates and ID cards.

Identify the student name, student ID, institution, courses with grades and
credits, relevant dates and GPA. Flag anything uncertain or missing.

Answer with a single JSON object:
{
  "extracted_fields": {
    "student_name"?: string,
    "student_id"?: string,
    "institution"?: string,
    "courses"?: [{"code": string, "name": string, "grade": string, "credits": number}],
    "dates"?: {"start"?: string, "end"?: string},
    "gpa"?: number
  },
  "confidence": number,
  "warnings": string[],
  "document_type": "transcript" | "certificate" | "id_card" | "other"
}
""".strip()


CHAT_SYSTEM_PROMPT = """
You are the assistant inside a student records management system. You help
administrators, faculty and staff with:

1. Student profile questions and analysis
2. Academic performance insights
3. Data queries and reports
4. Course and career recommendations
5. General questions about managing student records

Be helpful, professional and concise. When discussing student data, remind
users about privacy. Ask a clarifying question when you lack information.
""".strip()


INSIGHTS_SYSTEM_PROMPT = "You are an educational analytics expert. Provide data-driven insights."


def query_prompt(query: str, total_students: int, majors: list[str]) -> str:
    return f"""User query: "{query}"

Database context:
- Total students: {total_students}
- Available majors: {', '.join(majors) or 'none recorded'}
- Student statuses: active, graduated, suspended, withdrawn

Process this query and respond with valid JSON containing interpretation, search_criteria, summary, and suggestions."""


def insights_prompt(total: int, average_gpa: str, at_risk: int, interactions: int) -> str:
    return f"""Given these system statistics:
- Total students: {total}
- Average GPA: {average_gpa}
- At-risk students (GPA < 2.0): {at_risk}
- AI interactions this week: {interactions}

Provide 3-5 key insights about the student body and actionable recommendations for administrators. Respond as valid JSON: {{"insights": string[], "recommendations": string[]}}"""


def _iso(value) -> str:
    return value.isoformat() if value else "N/A"


def student_header(student) -> str:
    gpa = student.current_gpa if student.current_gpa is not None else "N/A"
    return f"""Name: {student.first_name} {student.last_name}
Student ID: {student.student_id}
Major: {student.major or 'Undeclared'}
Current GPA: {gpa}
Status: {student.status.value}
Enrollment Date: {_iso(student.enrollment_date)}"""


def profile_prompt(student, records) -> str:
    if records:
        lines = "\n".join(
            f"  {r.semester} {r.year}: {r.course_code} - {r.course_name} | Grade: {r.grade} | Credits: {r.credits}"
            for r in records
        )
    else:
        lines = "  No academic records available"
    return f"""Analyze this student profile:

{student_header(student)}

Academic Records:
{lines}

Provide your analysis as valid JSON."""


def recommendation_prompt(student, records, kind: str) -> str:
    history = (
        "\n  ".join(f"{r.course_name} ({r.course_code}): {r.grade}" for r in records)
        if records
        else "No academic records available"
    )
    if kind == "all":
        focus = "Provide a mix of course, career, scholarship, and activity recommendations."
    else:
        focus = f"Focus specifically on {kind} recommendations."
    return f"""Generate {'comprehensive' if kind == 'all' else kind} recommendations for this student:

{student_header(student)}

Course History:
  {history}

{focus}

Provide 3-5 prioritized recommendations as valid JSON."""


def document_prompt(content: str, student_id: str) -> str:
    return f"""Extract structured information from this document content:

---
{content}
---

Student ID in our system: {student_id}

Extract all relevant academic information and respond with valid JSON."""
