from __future__ import annotations

from typing import Any

CREATE_JOB = "createJob"
DELETE_JOB = "deleteJob"
SCHEDULE_INTERVIEW = "scheduleInterview"
NAVIGATE_TO_PAGE = "navigateToPage"

EMPLOYMENT_TYPES = ["Full-time", "Part-time", "Contract", "Temporary", "Internship"]
INTERVIEW_TYPES = ["Technical", "HR", "Behavioral", "Cultural Fit", "Initial Screening", "Final Round", "General"]

FUNCTION_SCHEMAS: list[dict[str, Any]] = [
    {
        "name": CREATE_JOB,
        "description": (
            "Create a new job listing based on user-provided details like title, description, "
            "requirements, location, etc."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "The title of the job position"},
                "description": {
                    "type": "string",
                    "description": (
                        "Detailed description of the job role and responsibilities, "
                        "potentially derived from user's detailed input"
                    ),
                },
                "requirements": {
                    "type": "string",
                    "description": "Required qualifications and skills for the position, extracted from user's message",
                },
                "location": {
                    "type": "string",
                    "description": "Location of the job (city, state, country or 'Remote')",
                },
                "salary": {"type": "string", "description": "Salary range or compensation details, if mentioned"},
                "company": {"type": "string", "description": "Company name offering the position, if mentioned"},
                "employmentType": {
                    "type": "string",
                    "description": "Type of employment (e.g., Full-time, Part-time, Contract)",
                    "enum": EMPLOYMENT_TYPES,
                },
            },
            "required": ["title", "description", "requirements", "location", "employmentType"],
        },
    },
    {
        "name": DELETE_JOB,
        "description": (
            "Delete an existing job listing based on identifying information like title, company, or location."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "The title of the job position to delete"},
                "company": {
                    "type": "string",
                    "description": "Company name to help identify the specific job, if provided",
                },
                "location": {
                    "type": "string",
                    "description": "Location to help identify the specific job, if provided",
                },
            },
            "required": ["title"],
        },
    },
    {
        "name": SCHEDULE_INTERVIEW,
        "description": (
            "Schedule an interview with a candidate, capturing details like name, position, date, time, "
            "location, and type."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "candidateId": {"type": "string", "description": "The ID of the candidate (if known or mentioned)"},
                "candidateName": {"type": "string", "description": "The name of the candidate to interview"},
                "position": {
                    "type": "string",
                    "description": "The position/job title the candidate is interviewing for",
                },
                "date": {"type": "string", "description": "The date of the interview (YYYY-MM-DD format)"},
                "time": {"type": "string", "description": "The time of the interview (HH:MM format, 24-hour)"},
                "location": {
                    "type": "string",
                    "description": "The location of the interview (physical location or 'Remote')",
                },
                "meetingLink": {
                    "type": "string",
                    "description": "Video conferencing link for remote interviews (optional)",
                },
                "interviewType": {
                    "type": "string",
                    "description": "Type of interview (e.g., Technical, HR, Cultural Fit)",
                    "enum": INTERVIEW_TYPES,
                },
                "notes": {"type": "string", "description": "Additional notes or instructions for the interview"},
                "jobId": {"type": "string", "description": "The ID of the job position (if known or mentioned)"},
            },
            "required": ["position", "date", "time", "interviewType", "candidateName"],
        },
    },
    {
        "name": NAVIGATE_TO_PAGE,
        "description": (
            "Navigate to a specific page or section of the application based on user intent. "
            "Use this when users want to go to, view, or access different parts of the system."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "intent": {
                    "type": "string",
                    "description": "The user's navigation intent or what they want to access",
                },
                "route": {"type": "string", "description": "The specific route to navigate to (if known)"},
                "query": {
                    "type": "string",
                    "description": "The original user query that indicates navigation intent",
                },
            },
            "required": ["intent", "query"],
        },
    },
]

# Insertion order matters: the first key found in the query wins.
ROUTE_MAPPINGS: dict[str, str] = {
    "dashboard": "/dashboard",
    "jobs": "/jobs",
    "create job": "/jobs/new",
    "new job": "/jobs/new",
    "job creation": "/jobs/new",
    "add job": "/jobs/new",
    "candidates": "/candidates",
    "pipeline": "/pipeline",
    "interview schedule": "/interview-schedule",
    "schedule interview": "/interview-schedule",
    "interviews": "/interview-schedule",
    "analytics": "/analytics",
    "reports": "/analytics",
    "overview": "/overview",
    "settings": "/settings",
    "agencies": "/agencies",
    "user dashboard": "/mydashboard",
    "ai chatbot": "/ai-chatbot",
    "ai meeting": "/ai-meeting",
    "application form": "/application-form",
    "home": "/home",
    "home page": "/home",
    "go home": "/home",
    "main": "/dashboard",
    "main dashboard": "/dashboard",
    "admin dashboard": "/dashboard",
    "job listings": "/jobs",
    "job management": "/jobs",
    "job board": "/jobs",
    "view jobs": "/jobs",
    "see jobs": "/jobs",
    "show jobs": "/jobs",
    "candidate management": "/candidates",
    "candidate list": "/candidates",
    "view candidates": "/candidates",
    "see candidates": "/candidates",
    "show candidates": "/candidates",
    "recruitment pipeline": "/pipeline",
    "hiring pipeline": "/pipeline",
    "view pipeline": "/pipeline",
    "see pipeline": "/pipeline",
    "show pipeline": "/pipeline",
    "interview scheduling": "/interview-schedule",
    "view interviews": "/interview-schedule",
    "see interviews": "/interview-schedule",
    "show interviews": "/interview-schedule",
    "view analytics": "/analytics",
    "see analytics": "/analytics",
    "show analytics": "/analytics",
    "view reports": "/analytics",
    "see reports": "/analytics",
    "show reports": "/analytics",
}


def find_route_from_query(query: str) -> str | None:
    text = query.lower()
    for key, route in ROUTE_MAPPINGS.items():
        if key in text:
            return route
    for key, route in ROUTE_MAPPINGS.items():
        if any(keyword in text for keyword in key.split(" ")):
            return route
    return None
