"""Reference interview questions and the generator that draws from them."""

import random
import uuid
from typing import Optional

from agents.registry import QUESTION_BANK, register_agent
from assessments.allocator import time_limit_for
from assessments.schemas import Difficulty, JobAssessmentConfig, Question, QuestionCategory

QUESTION_BANK_TEXTS: dict[QuestionCategory, dict[Difficulty, list[str]]] = {
    QuestionCategory.CODING: {
        Difficulty.EASY: [
            "Write a function to reverse a string without using built-in reverse methods.",
            "Implement a function to check if a number is prime.",
            "Create a function that finds the maximum element in an array.",
        ],
        Difficulty.MEDIUM: [
            "Implement a function to find the longest palindromic substring in a given string.",
            "Write a program to solve the Two Sum problem efficiently.",
            "Design a simple LRU (Least Recently Used) cache implementation.",
        ],
        Difficulty.HARD: [
            "Implement a thread-safe singleton pattern with lazy initialization.",
            "Design and implement a distributed rate limiting system.",
            "Write an algorithm to solve the N-Queens problem with optimizations.",
        ],
    },
    QuestionCategory.DSA: {
        Difficulty.EASY: [
            "Explain the difference between a stack and a queue with examples.",
            "What is the time complexity of searching in a binary search tree?",
            "Describe how a hash table works and its advantages.",
        ],
        Difficulty.MEDIUM: [
            "Compare and contrast different sorting algorithms and their use cases.",
            "Explain the concept of dynamic programming with a practical example.",
            "Describe the differences between depth-first and breadth-first search.",
        ],
        Difficulty.HARD: [
            "Analyze the space-time tradeoffs in various graph algorithms.",
            "Explain advanced tree data structures like Red-Black trees or AVL trees.",
            "Discuss the computational complexity of NP-complete problems.",
        ],
    },
    QuestionCategory.EDUCATION: {
        Difficulty.EASY: [
            "Tell me about your educational background and how it relates to this position.",
            "What was your favorite subject in college and why?",
            "Describe a challenging academic project you completed.",
        ],
        Difficulty.MEDIUM: [
            "How has your formal education prepared you for real-world software development?",
            "Discuss a concept from your studies that you've applied in practical projects.",
            "What additional learning have you pursued beyond your formal education?",
        ],
        Difficulty.HARD: [
            "How do you stay current with evolving technologies beyond formal education?",
            "Critique a limitation in traditional computer science education.",
            "Describe how you would design a curriculum for emerging technologies.",
        ],
    },
    QuestionCategory.ACHIEVEMENTS: {
        Difficulty.EASY: [
            "Tell me about a project you're particularly proud of.",
            "Describe an achievement that demonstrates your technical skills.",
            "What's the most complex problem you've solved in your career?",
        ],
        Difficulty.MEDIUM: [
            "Walk me through a project where you had to learn new technologies quickly.",
            "Describe a time when you improved a system's performance significantly.",
            "Tell me about a leadership role you took in a technical project.",
        ],
        Difficulty.HARD: [
            "Describe the most innovative solution you've architected and implemented.",
            "Tell me about a time you had to make a critical technical decision under pressure.",
            "Discuss a project where you had to balance competing technical constraints.",
        ],
    },
    QuestionCategory.PROBLEM_SOLVING: {
        Difficulty.EASY: [
            "How do you approach debugging a program that isn't working as expected?",
            "Describe your process for breaking down a complex problem.",
            "What steps do you take when you encounter an unfamiliar technology?",
        ],
        Difficulty.MEDIUM: [
            "A critical system is down and customers are affected. Walk me through your response.",
            "How would you handle conflicting requirements from different stakeholders?",
            "Describe how you would optimize a slow-performing database query.",
        ],
        Difficulty.HARD: [
            "Design a system to handle 1 million concurrent users with minimal latency.",
            "How would you migrate a legacy monolithic application to microservices?",
            "Describe your approach to building a fault-tolerant distributed system.",
        ],
    },
}


def question_id(category: QuestionCategory, index: int) -> str:
    return f"{category.value}_{index}_{uuid.uuid4().hex[:12]}"


def pick_question_text(
    category: QuestionCategory,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> str:
    """Random question of the category; medium is used for unknown difficulties."""
    by_difficulty = QUESTION_BANK_TEXTS[category]
    texts = by_difficulty.get(difficulty) or by_difficulty[Difficulty.MEDIUM]
    return (rng or random).choice(texts)


@register_agent(QUESTION_BANK)
class QuestionBankGenerator:
    """Draws questions from the built-in bank."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng

    async def generate(
        self,
        category: QuestionCategory,
        index: int,
        config: JobAssessmentConfig,
    ) -> Question:
        return Question(
            id=question_id(category, index),
            text=pick_question_text(category, config.difficulty_level, self.rng),
            category=category,
            difficulty=config.difficulty_level,
            time_limit=time_limit_for(category),
        )
