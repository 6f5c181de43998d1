"""Reference paragraphs for the typing test."""

import random
from typing import Optional

TEST_PARAGRAPHS: dict[str, list[str]] = {
    "technical": [
        "Software development is a complex process that requires careful planning, systematic approach, and continuous testing. Modern applications must be scalable, maintainable, and secure. Developers use various programming languages, frameworks, and tools to create robust solutions that meet business requirements and user expectations.",
        "Database optimization involves indexing strategies, query performance tuning, and proper schema design. Efficient data structures and algorithms are essential for handling large datasets. Memory management and caching mechanisms significantly impact application performance and user experience in production environments.",
        "Cloud computing platforms provide scalable infrastructure solutions for modern applications. Containerization technologies like Docker and Kubernetes enable efficient deployment and orchestration. Microservices architecture promotes modularity and allows teams to develop and deploy services independently.",
    ],
    "general": [
        "Professional communication in the workplace requires clarity, conciseness, and appropriate tone. Effective meetings involve clear agendas, active participation, and actionable outcomes. Time management skills help prioritize tasks and meet deadlines while maintaining work-life balance.",
        "Project management methodologies like Agile and Scrum facilitate collaborative development and iterative improvement. Regular feedback loops and stakeholder engagement ensure projects align with business objectives and deliver value to end users.",
        "Customer service excellence involves understanding client needs, providing timely responses, and following up on commitments. Building strong relationships with customers and colleagues creates a positive work environment and drives business success.",
    ],
    "creative": [
        "Creative writing requires imagination, storytelling skills, and attention to language nuances. Writers must understand their audience, develop compelling characters, and create engaging narratives that resonate with readers across different demographics and cultural backgrounds.",
        "Marketing campaigns combine creative messaging with data-driven insights to reach target audiences effectively. Brand positioning, visual design, and content strategy work together to create memorable experiences that drive customer engagement and loyalty.",
        "Design thinking processes involve empathy, ideation, and prototyping to solve complex problems. User experience research informs design decisions and ensures products meet real user needs while maintaining aesthetic appeal and functional usability.",
    ],
}


def pick_paragraph(category: str = "technical", rng: Optional[random.Random] = None) -> str:
    """
    Pick a random reference paragraph.

    Args:
        category: Paragraph category; unknown categories use "technical"
        rng: Random source, for reproducible picks

    Returns:
        Paragraph text
    """
    paragraphs = TEST_PARAGRAPHS.get(category, TEST_PARAGRAPHS["technical"])
    return (rng or random).choice(paragraphs)
