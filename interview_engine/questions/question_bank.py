"""Static question pool used when remote question generation is unavailable.

Five prompts per difficulty tier for a full-stack (React / Node.js)
developer interview, plus the category labels assigned per tier.
"""

from __future__ import annotations

QUESTION_POOL: dict[str, tuple[str, ...]] = {
    "easy": (
        "Explain the difference between functional components and class components "
        "in React. When would you use each?",
        "What is the virtual DOM in React and how does it improve performance "
        "compared to direct DOM manipulation?",
        "How does JavaScript's event loop work, and why is it important for "
        "understanding asynchronous programming?",
        "What are React hooks? Explain useState and useEffect with examples of when "
        "you would use them.",
        "Describe the box model in CSS and how the box-sizing property affects it.",
    ),
    "medium": (
        "How would you implement state management in a large React application? "
        "Discuss the trade-offs between Context API, Redux, and other state "
        "management solutions.",
        "Explain the concept of 'lifting state up' in React. Provide a practical "
        "example where this pattern would be useful.",
        "What are React's key props and why are they important for list rendering "
        "performance?",
        "How would you optimize a React application's performance? Discuss specific "
        "techniques like code splitting, memoization, and lazy loading.",
        "Explain RESTful API design principles. How would you structure endpoints "
        "for a blog application with users, posts, and comments?",
    ),
    "hard": (
        "Design a real-time collaborative editing feature (like Google Docs) for a "
        "web application. Discuss the architecture, technologies, and challenges "
        "you would face.",
        "How would you implement server-side rendering with React? Discuss the "
        "benefits, challenges, and when you would choose SSR over client-side "
        "rendering.",
        "Explain microservices architecture vs monolithic architecture. What factors "
        "would influence your decision between them for a new project?",
        "Describe how you would handle authentication and authorization in a secure "
        "web application. Discuss JWT, sessions, and security best practices.",
        "How would you design a scalable WebSocket service for real-time features? "
        "Discuss load balancing, connection management, and fault tolerance.",
    ),
}

CATEGORIES: dict[str, tuple[str, ...]] = {
    "easy": ("react-basics", "javascript", "html-css"),
    "medium": ("react-advanced", "state-management", "api-design"),
    "hard": ("system-design", "architecture", "scalability"),
}

# Topic focus handed to the remote generator per tier.
TOPIC_FOCUS: dict[str, str] = {
    "easy": "basic React components, JavaScript fundamentals, HTML/CSS concepts",
    "medium": "state management, API integration, performance optimization, React hooks",
    "hard": "system design, advanced React patterns, scalability, architecture decisions",
}


def category_for(index: int, difficulty: str) -> str:
    categories = CATEGORIES.get(difficulty)
    if not categories:
        return "general"
    return categories[index % len(categories)]
