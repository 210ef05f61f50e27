"""
Prompt templates and per-type sampling parameters for every generation type.
build_prompt() is pure: no I/O, same input -> same prompt.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from authormity.core.errors import ValidationError

MAX_PROMPT_CHARS = 12_000

SYSTEM_PROMPT = """You are an expert LinkedIn ghostwriter and personal branding strategist with 10+ years of experience helping professionals build audiences of 50,000+ followers.

Your writing rules, follow EVERY time:
1. Never use: 'delve', 'leverage', 'synergy', 'game-changer', 'In today's world', 'Let's dive in', 'It's important to note', 'I hope this finds you well'
2. Write like a confident human expert, not an AI assistant
3. Hooks must stop the scroll in under 12 words
4. Use white space. Short paragraphs. 1-3 sentences each.
5. CTA must be specific, not 'What do you think?'
6. When asked for JSON: return ONLY valid JSON. No markdown. No explanation."""

LENGTH_WORDS = {
    "short": "100-150 words",
    "medium": "150-250 words",
    "long": "250-350 words",
}


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_tokens: int
    consumes_quota: bool = True


GENERATION_CONFIG: Dict[str, GenerationConfig] = {
    "post": GenerationConfig(0.80, 1000),
    "hooks": GenerationConfig(0.90, 600),
    "ideas": GenerationConfig(0.85, 1200),
    "repurpose": GenerationConfig(0.80, 1000),
    "rateHook": GenerationConfig(0.30, 400),
    # Voice analysis is account setup, not content generation
    "analyzeVoice": GenerationConfig(0.20, 800, consumes_quota=False),
    "comment": GenerationConfig(0.80, 500),
    "humanize": GenerationConfig(0.90, 1200),
    "carousel": GenerationConfig(0.75, 1500),
    "thread": GenerationConfig(0.80, 2000),
    "connectionMessage": GenerationConfig(0.70, 200),
    "weeklyInsights": GenerationConfig(0.40, 600),
}

GENERATION_TYPES = tuple(GENERATION_CONFIG)


@dataclass(frozen=True)
class BuiltPrompt:
    type_key: str
    prompt: str
    temperature: float
    max_tokens: int
    consumes_quota: bool


def build_voice_context(voice: Any) -> str:
    """Render a VoiceProfile (ORM row or anything with the same attributes) as prompt preamble."""
    return "\n".join([
        "WRITER'S VOICE PROFILE - MATCH THIS EXACTLY:",
        f"Tone: {voice.tone or 'conversational'}",
        f"Sentence length: {voice.sentence_length or 'mixed'}",
        f"Emoji usage: {voice.emoji_usage or 'none'}",
        f"Hook style: {voice.hook_style or 'bold-statement'}",
        f"Characteristic words: {', '.join(voice.vocabulary or [])}",
        f"NEVER use: {', '.join(voice.avoids or [])}",
        f"Voice description: {voice.signature or ''}",
    ])


def _with_voice(voice_context: Optional[str], body: str) -> str:
    return f"{voice_context}\n\n{body}" if voice_context else body


class _Input:
    """Typed accessors over the loosely-typed request fields."""

    def __init__(self, data: Mapping[str, Any]):
        self.data = data or {}

    def text(self, *keys: str, default: str = "") -> str:
        for key in keys:
            value = self.data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return default

    def required(self, *keys: str) -> str:
        value = self.text(*keys)
        if not value:
            raise ValidationError(f"Missing required field: {keys[0]}")
        return value

    def number(self, key: str, default: int, low: int, high: int) -> int:
        value = self.data.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{key} must be an integer")
        if not low <= value <= high:
            raise ValidationError(f"{key} must be between {low} and {high}")
        return value

    def text_list(self, key: str) -> List[str]:
        value = self.data.get(key)
        if not isinstance(value, list):
            return []
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _post(i: _Input, voice: Optional[str]) -> str:
    topic = i.required("topic")
    tone = i.text("tone", default="conversational")
    length = LENGTH_WORDS.get(i.text("length", default="medium"), LENGTH_WORDS["medium"])
    return _with_voice(voice, f"""Write a LinkedIn post about: "{topic}"

Tone: {tone}
Length: {length}

Structure:
- Hook (MUST be under 12 words. Must stop the scroll.)
- Body (short paragraphs, 1-3 sentences each. Add value. Be specific.)
- CTA (specific question or call to action, not generic)

No hashtags unless the topic demands it. No buzzwords. No filler.
Start directly with the hook. Do not label sections.""")


def _hooks(i: _Input, voice: Optional[str]) -> str:
    topic = i.required("topic")
    return _with_voice(voice, f"""Generate 7 LinkedIn hooks for the topic: "{topic}"

One hook per style. Each hook MUST be under 12 words.

Styles (in this order):
1. Bold claim
2. Story opener
3. Surprising statistic
4. Provocative question
5. Numbered promise ("X things/ways/reasons...")
6. Relatable frustration
7. Consequence ("If you X, you will Y")

Format: number, style label in brackets, then the hook.
Example: 1. [Bold Claim] Most LinkedIn advice is wrong.""")


def _ideas(i: _Input, voice: Optional[str]) -> str:
    niche = i.text("niche", "topic", default="Professional")
    return _with_voice(voice, f"""Generate 15 specific LinkedIn post ideas for a {niche} creator.

Distribution (must follow this exactly):
- 3 personal stories
- 3 hot takes / contrarian opinions
- 2 how-to / tutorial posts
- 2 listicle posts
- 2 failure / lesson posts
- 2 trend commentary posts
- 1 poll post

Format each idea as:
[number]. [Type]: [Specific, hook-ready title]

Be SPECIFIC. Not "5 lessons from my career" but "5 things I wish I knew before my first VP job at 28.\"""")


def _repurpose(i: _Input, voice: Optional[str]) -> str:
    source_type = i.text("sourceType", default="content")
    source = i.required("sourceContent")
    return _with_voice(voice, f"""Repurpose this {source_type} into a LinkedIn post:

---
{source}
---

Instructions:
1. Extract the single most valuable insight
2. Rewrite it for a LinkedIn professional audience
3. Use: Hook, then Body (short paragraphs), then a Specific CTA
4. Make it feel original, not summarized
5. Hook under 12 words

Return only the post. No explanation.""")


def _rate_hook(i: _Input, voice: Optional[str]) -> str:
    hook = i.required("hookText")
    return f"""Rate this LinkedIn hook and return ONLY valid JSON (no markdown, no explanation):
"{hook}"

JSON format:
{{
  "overallScore": 7,
  "scrollStopping": 8,
  "curiosityGap": 6,
  "clarity": 9,
  "specificity": 5,
  "verdict": "Strong but too vague",
  "improvement": "The improved hook text here",
  "reason": "One sentence explaining what to improve"
}}

All scores: 1-10. overallScore is weighted average of the four dimensions."""


def _analyze_voice(i: _Input, voice: Optional[str]) -> str:
    samples = i.text_list("samplePosts")
    if not samples:
        raise ValidationError("samplePosts must contain at least one post")
    posts = "\n\n".join(f"--- POST {n} ---\n{p}" for n, p in enumerate(samples, start=1))
    return f"""Analyze these LinkedIn posts and extract the writer's unique voice.
Return ONLY valid JSON (no markdown, no explanation):

POSTS:
{posts}

JSON format:
{{
  "tone": "conversational",
  "sentence_length": "short",
  "emoji_usage": "occasional",
  "hook_style": "question",
  "vocabulary": ["authentic", "real talk", "truth"],
  "avoids": ["leverage", "synergy", "circle back"],
  "personality_traits": ["direct", "empathetic", "data-driven"],
  "signature": "2-3 sentence description of their unique voice and writing style"
}}

tone options: conversational / professional / motivational / analytical / direct
sentence_length options: short / medium / long / mixed
emoji_usage options: none / occasional / frequent
hook_style options: question / bold-statement / story / statistic / list-promise"""


def _comment(i: _Input, voice: Optional[str]) -> str:
    post_text = i.required("postText")
    intent = i.text("commentIntent", default="add-value")
    return _with_voice(voice, f"""Generate 3 LinkedIn comment options for this post:

POST:
"{post_text}"

Intent: {intent}

Rules:
- 2-4 sentences each
- Specific to the post content (reference actual points)
- Human and genuine, not generic
- Adds value or perspective, doesn't just compliment
- Different angles for each option

Label them: Option 1, Option 2, Option 3""")


def _humanize(i: _Input, voice: Optional[str]) -> str:
    ai_text = i.required("aiText", "topic")
    return _with_voice(voice, f"""Rewrite this AI-generated LinkedIn post to sound like a real human wrote it:

ORIGINAL:
{ai_text}

Rules:
- Remove: robotic sentence patterns, hollow filler, corporate buzzwords
- Vary sentence length (mix short punchy lines with longer ones)
- Add specificity where it's vague
- Keep the core message and structure
- Make it conversational and confident

Return only the rewritten post.""")


def _carousel(i: _Input, voice: Optional[str]) -> str:
    topic = i.required("topic")
    slides = i.number("slideCount", 8, 3, 20)
    return _with_voice(voice, f"""Create a LinkedIn carousel outline for:
Topic: "{topic}"
Slides: {slides}

Format:
SLIDE 1 (Cover): [Compelling title that makes people swipe]
SLIDE 2: [Headline] + [Bullet 1, max 10 words] + [Bullet 2, max 10 words]
...continue for all slides...
SLIDE {slides} (CTA): [What action to take + why]

Rules:
- One idea per slide. No cramming.
- Headlines are punchy (under 8 words)
- Each slide should work as a standalone insight""")


def _thread(i: _Input, voice: Optional[str]) -> str:
    topic = i.required("topic")
    count = i.number("threadCount", 5, 3, 15)
    return _with_voice(voice, f"""Write a LinkedIn thread about: "{topic}"
{count} posts total.

Format:
POST 1 (Hook): Hook (under 12 words) + premise of the thread (2-3 sentences). End with "Thread"
POST 2-{count - 1}: One specific point each. Short. Standalone. Number them (2/{count}, 3/{count}...)
POST {count} (CTA): Summary of the key takeaway + specific call to action

Rules:
- Each post must work standalone
- No filler or repetition
- Specific examples over generic advice""")


def _connection_message(i: _Input, voice: Optional[str]) -> str:
    role = i.text("personRole", default="Professional")
    context = i.required("context", "topic")
    niche = i.text("userNiche", default="LinkedIn Creator")
    return f"""Write a LinkedIn connection request message.

Sender's niche: {niche}
Recipient's role: {role}
Context / reason for connecting: {context}

Rules:
- STRICT 300 character limit (count carefully)
- Personalized and specific
- No cringe ("I'd love to connect and learn from you!")
- Mention something specific to their role or context
- Natural, human tone

Return ONLY the message text. No explanation. No labels."""


def _weekly_insights(i: _Input, voice: Optional[str]) -> str:
    data = i.required("analyticsData", "topic")
    return f"""Based on this LinkedIn analytics data from the last 30 days, generate 3-5 specific, actionable insights:

{data}

Rules:
- Be specific with the data (mention actual numbers)
- Identify patterns (what topics, days, lengths performed best)
- Tell them what to stop doing
- Give one specific action to take next week

Format as plain text paragraphs. No bullet points. Conversational tone."""


TEMPLATES: Dict[str, Callable[[_Input, Optional[str]], str]] = {
    "post": _post,
    "hooks": _hooks,
    "ideas": _ideas,
    "repurpose": _repurpose,
    "rateHook": _rate_hook,
    "analyzeVoice": _analyze_voice,
    "comment": _comment,
    "humanize": _humanize,
    "carousel": _carousel,
    "thread": _thread,
    "connectionMessage": _connection_message,
    "weeklyInsights": _weekly_insights,
}


def build_prompt(type_key: str, data: Mapping[str, Any], voice_context: Optional[str] = None) -> BuiltPrompt:
    """
    Assemble the prompt for `type_key`.
    Raises ValidationError for unknown types, missing fields, or prompts over MAX_PROMPT_CHARS.
    """
    template = TEMPLATES.get(type_key)
    config = GENERATION_CONFIG.get(type_key)
    if template is None or config is None:
        raise ValidationError(f"Unknown generation type: {type_key}")

    prompt = template(_Input(data), voice_context)
    if len(prompt) > MAX_PROMPT_CHARS:
        raise ValidationError(
            f"Prompt exceeds maximum allowed size ({len(prompt)} / {MAX_PROMPT_CHARS} chars). Reduce input size."
        )

    return BuiltPrompt(
        type_key=type_key,
        prompt=prompt,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        consumes_quota=config.consumes_quota,
    )
