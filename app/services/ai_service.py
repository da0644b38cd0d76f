from typing import Dict, List
import httpx
from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)

GROQ_MODEL_CHAT = "llama-3.3-70b-versatile"
GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"

# Lazy initialization of the Groq SDK client
_groq_client = None

def get_groq_client():
    """Get or create the Groq client; "rest_api" means the SDK is unusable and REST is used instead"""
    global _groq_client
    if _groq_client is None:
        try:
            from groq import Groq
            _groq_client = Groq(api_key=settings.GROQ_API_KEY, http_client=httpx.Client(timeout=30.0))
        except Exception as e:
            logger.warning(f"Groq SDK initialization failed: {e}, using REST API fallback")
            _groq_client = "rest_api"
    return _groq_client

def call_groq_chat(messages: List[Dict[str, str]], temperature: float = 0.7, max_tokens: int = 512, model: str = GROQ_MODEL_CHAT) -> str:
    """Call Groq chat completions with fallback to REST if the SDK is unavailable"""
    if not settings.GROQ_API_KEY:
        raise RuntimeError("GROQ_API_KEY is not configured")

    client = get_groq_client()
    if client == "rest_api":
        headers = {
            "Authorization": f"Bearer {settings.GROQ_API_KEY}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens
        }
        try:
            with httpx.Client(timeout=60.0) as http_client:
                response = http_client.post(GROQ_CHAT_URL, json=payload, headers=headers)
                response.raise_for_status()
                return response.json()["choices"][0]["message"]["content"].strip()
        except Exception as e:
            raise RuntimeError(f"REST API call failed: {str(e)}")

    try:
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens
        )
        return response.choices[0].message.content.strip()
    except Exception as e:
        raise RuntimeError(f"SDK call failed: {str(e)}")

def fallback_briefing(recommendations: dict, turnover: dict) -> str:
    summary = recommendations["summary"]
    stats = turnover["stats"]
    return (
        f"{summary['total_recommendations']} products need reordering "
        f"({summary['urgent_items']} urgent, {summary['high_priority_items']} high priority), "
        f"estimated reorder cost ${summary['estimated_cost']:,.2f}. "
        f"Of {stats['total_products']} products, {stats['fast_moving_count']} are fast moving "
        f"and {stats['dead_stock_count']} show no turnover in the period."
    )

def generate_inventory_briefing(recommendations: dict, turnover: dict) -> Dict[str, object]:
    """Natural-language briefing over reorder and turnover numbers; falls back to a plain summary"""
    summary = recommendations["summary"]
    stats = turnover["stats"]
    top_items = "\n".join(
        f"- {r['product_name']} ({r['product_sku']}): {r['priority']}, {r['reason']}, "
        f"stock {r['current_stock']}, reorder {r['recommended_quantity']:.0f}"
        for r in recommendations["recommendations"][:5]
    ) or "- none"

    prompt = f"""
    Write a short inventory briefing for a store manager based on this data:

    Reorder recommendations: {summary['total_recommendations']} ({summary['urgent_items']} urgent, {summary['high_priority_items']} high)
    Estimated reorder cost: ${summary['estimated_cost']:,.2f}
    Top items:
    {top_items}

    Turnover ({turnover['period']['start_date']} to {turnover['period']['end_date']}):
    Products: {stats['total_products']}, average turnover ratio {stats['average_turnover_ratio']:.2f}
    Fast: {stats['fast_moving_count']}, medium: {stats['medium_moving_count']}, slow: {stats['slow_moving_count']}, dead: {stats['dead_stock_count']}
    Revenue: ${stats['total_sales_revenue']:,.2f}

    Provide an overview, the most pressing reorders and two actionable recommendations.
    Keep it to two short paragraphs.
    """

    try:
        text = call_groq_chat(
            messages=[
                {"role": "system", "content": "You are a professional inventory analyst. Generate concise, actionable briefings."},
                {"role": "user", "content": prompt}
            ],
            temperature=0.5,
            max_tokens=500,
        )
        return {"briefing": text, "generated_by": "ai"}
    except RuntimeError as e:
        logger.warning(f"Inventory briefing fell back to plain summary: {e}")
        return {"briefing": fallback_briefing(recommendations, turnover), "generated_by": "fallback"}
