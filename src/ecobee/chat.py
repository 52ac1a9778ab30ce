"""
Chat assistant

Builds the context string the chat service sees and provides canned,
result-aware replies when the service is unavailable.
"""

import json
import logging
from typing import Optional, Sequence

from .providers import ChatService, ProviderError, get_chat_service
from .quiz.schema import QUIZ_QUESTIONS, QuestionCategory, QuizQuestion, QuizResponse, get_question
from .scoring.result import BOUNDARY_NAMES, ScoringResult

logger = logging.getLogger(__name__)


# Grade -> encouragement line for the welcome message
ENCOURAGEMENT = {
    "A": "Excellent work! You're already making great sustainable choices.",
    "B": "Good job! You're on the right track with sustainability.",
    "C": "You're making progress! There's room for improvement.",
    "D": "Every journey starts with a first step! Let's work together to improve your sustainability.",
}

FOCUS_AREAS = [
    "Reducing your carbon footprint",
    "Making better food choices",
    "Sustainable fashion decisions",
    "Energy and water conservation",
    "Waste reduction strategies",
]

GENERIC_WELCOME = (
    "Hi! I'm EcoBee, your sustainability assistant. I can help with eco-friendly tips, "
    "product recommendations, and questions about sustainable living. How can I help you today?"
)

DEFAULT_REPLIES = [
    "That's an interesting question! I'm here to help with sustainability topics. "
    "Based on your quiz results, I can give advice for your specific situation. What would you like to focus on?",
    "I love helping with sustainability questions! Since I have your quiz results, I can give you "
    "targeted advice. What interests you most: food, transport, energy, or waste reduction?",
    "Thanks for chatting with me! I give sustainability advice based on your quiz responses. "
    "What green changes would you like to explore?",
]


def _contains(text: str, *words: str) -> bool:
    return any(w in text for w in words)


def _answer_for(
    responses: Sequence[QuizResponse],
    category: QuestionCategory,
    questions: tuple[QuizQuestion, ...],
) -> Optional[str]:
    """First committed answer in a category, flattened to text."""
    for response in responses:
        if get_question(response.question_id, questions).category == category:
            answer = response.answer
            if isinstance(answer, tuple):
                return " ".join(answer)
            return str(answer)
    return None


def build_chat_context(
    result: Optional[ScoringResult],
    responses: Sequence[QuizResponse] = (),
    questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
) -> str:
    """
    Context string describing the user's results for the chat service.

    Args:
        result: Scoring result, if the quiz was completed
        responses: Committed quiz responses
        questions: Question set the responses refer to

    Returns:
        "sustainability" alone when there's no result, otherwise a profile
        summary with score, grade, worst area, top recommendation, and answers
    """
    if result is None:
        return "sustainability"

    worst = result.worst_boundary
    top = result.recommendations[0].action if result.recommendations else "Not available"
    answers = [
        {
            "question": get_question(r.question_id, questions).text,
            "answer": list(r.answer) if isinstance(r.answer, tuple) else r.answer,
        }
        for r in responses
    ]
    return (
        f"sustainability - User Profile: Score {round(result.composite)}/100 (Grade: {result.grade}), "
        f"Highest impact area: {BOUNDARY_NAMES[worst]} ({round(result.per_boundary_averages[worst.value])}/100), "
        f"Top recommendation: {top}, "
        f"Quiz responses: {json.dumps(answers)}"
    )


def welcome_message(result: Optional[ScoringResult]) -> str:
    """Opening message, personalised when a result is available."""
    if result is None:
        return GENERIC_WELCOME

    encouragement = ENCOURAGEMENT.get(result.grade, ENCOURAGEMENT["D"])
    areas = "\n".join(f"- {area}" for area in FOCUS_AREAS)
    return (
        "Hi! I'm EcoBee, your personal sustainability coach!\n\n"
        f"I've reviewed your quiz results: you scored {round(result.composite)}/100 "
        f"(Grade: {result.grade}). {encouragement}\n\n"
        "I can give you personalised tips for:\n"
        f"{areas}\n\n"
        "What area would you like to focus on first?"
    )


def _result_reply(
    text: str,
    result: ScoringResult,
    responses: Sequence[QuizResponse],
    questions: tuple[QuizQuestion, ...],
) -> Optional[str]:
    """Replies that draw on the user's own result; None if no topic matched."""
    scores = result.per_boundary_averages
    worst = BOUNDARY_NAMES[result.worst_boundary]

    if _contains(text, "improve", "better", "help") and result.recommendations:
        top = result.recommendations[0]
        return (
            f"Based on your quiz results, here's your top priority: {top.action}.\n\n"
            f"This could improve your {top.boundary} impact significantly! "
            f"Your current impact score in this area is {round(top.current_score)}/100.\n\n"
            "Would you like specific steps to make this change, or shall we focus on a different area?"
        )

    if _contains(text, "food", "eat", "diet"):
        tip = "Sustainable eating makes a big difference! "
        food = _answer_for(responses, QuestionCategory.FOOD, questions)
        if food and "meat" in food:
            tip += (
                "Since you eat meat regularly, try replacing one meat meal per week with a "
                "plant-based alternative. This alone can cut your food footprint by 10-15%."
            )
        elif food and "plant" in food:
            tip += (
                "Great that you're already eating mostly plants! To go further, focus on local "
                "and seasonal produce and consider reducing dairy."
            )
        else:
            tip += (
                "Consider eating more plant-based meals, choosing local and seasonal produce, "
                "and reducing food waste by planning meals."
            )
        return tip

    if _contains(text, "transport", "travel", "car"):
        tip = "Sustainable transport helps the planet! "
        transport = _answer_for(responses, QuestionCategory.TRANSPORT, questions)
        if transport == "car":
            tip += (
                "Since you drive, consider carpooling, public transport for longer trips, or an "
                "electric vehicle next time. Combining errands into one trip helps too."
            )
        elif transport == "public":
            tip += (
                "Excellent that you use public transport! Consider cycling or walking for "
                "shorter trips when possible."
            )
        else:
            tip += "Walking, cycling and public transport are the lowest-impact ways to get around."
        return tip

    if _contains(text, "energy", "power", "electricity"):
        tip = "Energy efficiency is key! "
        if scores["climate"] > 70:
            tip += (
                "Your climate impact is high. Focus on LED bulbs, unplugging idle devices, "
                "a programmable thermostat, and renewable energy options."
            )
        else:
            tip += (
                "You're doing well with energy! To improve further, try smart power strips "
                "and energy-efficient appliances."
            )
        return tip

    if _contains(text, "waste", "recycle", "plastic"):
        tip = "Reducing waste is crucial! "
        if scores["biogeochemical"] > 70:
            tip += (
                "Focus on reusable bags and bottles, products with minimal packaging, "
                "composting organic waste, and sorting recyclables properly."
            )
        else:
            tip += (
                "You're managing waste well! To do even better, buy in bulk, choose glass "
                "over plastic, and look for zero-waste stores nearby."
            )
        return tip

    if _contains(text, "clothing", "fashion"):
        return (
            "Fashion can be sustainable too! Look for quality pieces that last, second-hand or "
            "vintage items, and brands using organic or recycled materials. A closet audit helps "
            "you get the most out of what you already own."
        )

    if _contains(text, "score", "result"):
        best = BOUNDARY_NAMES[result.best_boundary]
        return (
            f"Your impact score is {round(result.composite)}/100 (Grade: {result.grade}).\n\n"
            f"Your strongest area: {best}\n"
            f"Area for improvement: {worst}\n\n"
            f"Would you like specific tips to improve your {worst} score?"
        )

    return None


def fallback_reply(
    message: str,
    result: Optional[ScoringResult] = None,
    responses: Sequence[QuizResponse] = (),
    questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
) -> str:
    """
    Canned reply used when the chat service can't be reached.

    Deterministic: the same message and result always give the same reply.
    """
    text = message.lower()

    if result is not None:
        reply = _result_reply(text, result, responses, questions)
        if reply:
            return reply

    if _contains(text, "sustainable", "eco"):
        return (
            "Great question about sustainability! Choose products with minimal packaging, buy "
            "local when possible, and look for certifications like Fair Trade or organic labels. "
            "Would you like advice for a specific category?"
        )

    if _contains(text, "help", "tips"):
        return (
            "I'm here to help with all your sustainability questions! I can advise on eco-friendly "
            "products, sustainable living, and reducing your carbon footprint. What area interests you?"
        )

    return DEFAULT_REPLIES[len(message) % len(DEFAULT_REPLIES)]


class ChatAssistant:
    """
    Chat front end over a ChatService.

    Falls back to canned replies when the service fails or returns nothing.
    """

    def __init__(
        self,
        service: Optional[ChatService] = None,
        questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
    ):
        self.service = service if service is not None else get_chat_service()
        self.questions = questions

    def welcome(self, result: Optional[ScoringResult] = None) -> str:
        return welcome_message(result)

    async def ask(
        self,
        message: str,
        result: Optional[ScoringResult] = None,
        responses: Sequence[QuizResponse] = (),
    ) -> str:
        """
        Answer a user message.

        Args:
            message: User message
            result: Scoring result to personalise with
            responses: Committed quiz responses

        Returns:
            Reply text (never empty)
        """
        if not message.strip():
            raise ValueError("Message must not be empty")

        context = build_chat_context(result, responses, self.questions)
        try:
            reply = await self.service.reply(message.strip(), context)
        except ProviderError as e:
            logger.warning(f"Chat service {self.service.name} failed, using canned reply: {e}")
            return fallback_reply(message, result, responses, self.questions)

        if not reply.strip():
            logger.warning(f"Chat service {self.service.name} returned an empty reply")
            return fallback_reply(message, result, responses, self.questions)
        return reply

    async def aclose(self) -> None:
        await self.service.aclose()
