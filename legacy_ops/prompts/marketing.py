"""
Marketing prompts

Templates shared by the OpenAI, Anthropic and Vertex wrappers and by the
email campaign service.
"""

from langchain_core.prompts import ChatPromptTemplate

MARKETER_SYSTEM_PROMPT = (
    "You are the social media and email marketer for {brand}, an independent "
    "wine and liquor store. Write warm, local, upbeat copy. Never encourage "
    "irresponsible drinking and never target anyone under 21."
)

INSTAGRAM_POST_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", MARKETER_SYSTEM_PROMPT),
        (
            "human",
            """Create an engaging Instagram post for {brand} about: {topic}

Include:
1. Caption: 2-3 sentences with emojis, conversational tone
2. Call to action: clear and compelling
3. Hashtags: 20-25 relevant hashtags mixing popular and niche tags, as one space-separated string
4. Image description: the type of photo that would work best

Respond with a JSON object with keys: caption, cta, hashtags, image_description""",
        ),
    ]
)

PRODUCT_DESCRIPTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", MARKETER_SYSTEM_PROMPT),
        (
            "human",
            """Write a compelling product description for:
Product: {product}
Features: {features}

Include an engaging opening hook, key benefits, sensory details, ideal
occasions or pairings and a call to action. Keep it between 100 and 150
words, professional yet approachable.""",
        ),
    ]
)

REVIEW_SENTIMENT_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            """Analyze the sentiment of these customer reviews and provide insights:

{reviews}

Provide:
1. Overall sentiment (positive/neutral/negative)
2. Key positive themes
3. Key concerns or complaints
4. Suggested improvements
5. Response templates for common issues""",
        ),
    ]
)

EMAIL_CAMPAIGN_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", MARKETER_SYSTEM_PROMPT),
        (
            "human",
            """Create an engaging email campaign for {brand}'s {campaign_name}.

Store Info:
- Location: {address}
- Hours: {hours}
- Phone: {phone}

Offers:
{offers}

Generate:
1. Compelling headline
2. 3-4 engaging paragraphs
3. Call-to-action
4. Special note for VIP customers

Make it warm, inviting, and urgency-driven for weekend sales.""",
        ),
    ]
)
