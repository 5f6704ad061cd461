COMMON_SKILLS = [
    "JavaScript", "TypeScript", "React", "Vue", "Angular", "Node.js", "Python", "Java", "C++", "C#",
    "HTML", "CSS", "Sass", "Tailwind", "Bootstrap", "Material-UI", "Express", "Django", "Flask",
    "MongoDB", "PostgreSQL", "MySQL", "Redis", "Docker", "Kubernetes", "AWS", "Azure", "GCP",
    "Git", "GitHub", "GitLab", "CI/CD", "Jenkins", "REST API", "GraphQL", "Microservices",
    "Machine Learning", "AI", "Data Science", "TensorFlow", "PyTorch", "Pandas", "NumPy",
    "Figma", "Sketch", "Adobe XD", "Photoshop", "Illustrator", "UI/UX", "Design Systems",
    "Agile", "Scrum", "Kanban", "JIRA", "Confluence", "Slack", "Microsoft Office",
    "Leadership", "Project Management", "Communication", "Problem Solving", "Team Work",
]


def extract_skills(text: str, vocabulary: list[str] | None = None) -> list[str]:
    """Return vocabulary entries found in ``text``, in vocabulary order.

    Matching is a case-insensitive substring test, so short entries such as
    "AI" or "Git" also match inside longer words.
    """
    lowered = (text or "").lower()
    found: list[str] = []
    for skill in vocabulary or COMMON_SKILLS:
        if skill.lower() in lowered and skill not in found:
            found.append(skill)
    return found
