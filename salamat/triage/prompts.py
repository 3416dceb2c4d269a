"""Triage interview prompts and user-facing triage messages.

Instructions to the model are in English; everything shown to the user is Persian.
"""

from salamat.models.triage import TriageCategory

# ==============================================================================
# INTERVIEW
# ==============================================================================

TRIAGE_SYSTEM_PROMPT = """You are a medical triage assistant. Only assess symptoms and health concerns. Refuse non-medical questions.

NOTE: Instructions are in English for efficiency, but all messages and options must be in Persian.

PROCESS:
- Ask one question at a time - ALWAYS ask the next best question based on user's input
- For each user, ask 3 initial questions (choose the best questions for their specific input)
- After 3 questions, classify if confident; if not confident, continue asking the next best question until confident
- Gather: chief complaint, severity, duration, onset, red flags, associated symptoms
- Prioritize safety over speed

CLASSIFICATIONS:
- EMERGENCY: Life-threatening, immediate care
- URGENT: Serious, ER within hours
- SEMI_URGENT: Care within 24-48 hours
- NON_URGENT: Routine care
- SELF_CARE: Home management

RESPONSE FORMAT:
Medical questions:
{
  "type": "question",
  "message": "Your question",
  "options": ["Option 1", "Option 2", "Option 3", "Option 4"]
}

Non-medical questions:
{
  "type": "question",
  "message": "I only help with medical symptoms."
}

Final classification:
{
  "type": "classification",
  "category": "EMERGENCY|URGENT|SEMI_URGENT|NON_URGENT|SELF_CARE"
}
"""

FORCE_CLASSIFICATION_PROMPT = """The interview has reached its question limit.
Do NOT ask another question. Using everything gathered so far, respond now with ONLY the final classification JSON:
{
  "type": "classification",
  "category": "EMERGENCY|URGENT|SEMI_URGENT|NON_URGENT|SELF_CARE"
}
When uncertain, choose the more cautious (more urgent) category."""

# ==============================================================================
# FINAL RESPONSE (one per triage category, keys match the template sections)
# ==============================================================================

END_RESPONSE_PROMPTS = {
    TriageCategory.EMERGENCY: """Based on this medical conversation, provide medical content for EMERGENCY triage in Persian.

Return JSON with:
{
  "comprehensive_assessment": "Complete medical overview of symptoms, concerns, and risk factors identified",
  "immediate_actions": "3-5 critical life-saving actions to take RIGHT NOW while waiting for emergency services. Use clear, numbered Persian instructions separated by <br> tags for proper display.",
  "emergency_instructions": "Specific Persian instructions emphasizing the need to call 115 immediately and what to tell them"
}""",
    TriageCategory.URGENT: """Based on this medical conversation, provide medical content for URGENT triage in Persian.

Return JSON with:
{
  "comprehensive_assessment": "Complete medical overview of symptoms, concerns, and risk factors identified",
  "next_steps": "Specific actions to take for emergency department visit",
  "preparation_guidance": "What to bring/prepare and what to expect at ER",
  "timeframe_details": "Detailed explanation of why care is needed within hours"
}""",
    TriageCategory.SEMI_URGENT: """Based on this medical conversation, provide medical content for SEMI_URGENT triage in Persian.

Return JSON with:
{
  "comprehensive_assessment": "Complete medical overview of symptoms, concerns, and risk factors identified",
  "scheduling_advice": "Detailed guidance on how to schedule medical care within 24-48 hours",
  "monitoring_instructions": "Specific warning signs that would require immediate escalation",
  "interim_management": "Safe measures to manage symptoms while waiting for appointment"
}""",
    TriageCategory.NON_URGENT: """Based on this medical conversation, provide medical content for NON_URGENT triage in Persian.

Return JSON with:
{
  "comprehensive_assessment": "Complete medical overview of symptoms, concerns, and risk factors identified",
  "scheduling_recommendations": "Various options for scheduling routine medical care",
  "self_management": "Safe self-care measures that can be taken while waiting",
  "escalation_guidelines": "Clear criteria for when to escalate to more urgent care"
}""",
    TriageCategory.SELF_CARE: """Based on this medical conversation, provide medical content for SELF_CARE triage in Persian.

Return JSON with:
{
  "comprehensive_assessment": "Complete medical overview of symptoms, concerns, and risk factors identified",
  "home_treatment": "Evidence-based home treatment options and remedies",
  "monitoring_guidelines": "How to properly monitor symptoms at home",
  "warning_indicators": "Clear signs that require immediate medical attention",
  "prevention_advice": "Practical tips to prevent recurrence or worsening"
}""",
}

# ==============================================================================
# USER-FACING MESSAGES (Persian)
# ==============================================================================

UPSTREAM_UNAVAILABLE_MESSAGE = (
    "سرویس ارزیابی در حال حاضر در دسترس نیست. لطفاً چند لحظه دیگر دوباره تلاش کنید. "
    "در صورت وضعیت اورژانسی، فوراً با ۱۱۵ تماس بگیرید."
)

GENERIC_ERROR_MESSAGE = "متأسفانه خطایی رخ داده است. لطفاً علائم خود را دوباره شرح دهید."

ASSESSMENT_COMPLETED_MESSAGE = (
    "ارزیابی این جلسه به پایان رسیده است. برای بررسی علائم جدید، یک ارزیابی تازه شروع کنید."
)

TEMPLATE_ONLY_SECTION_TEXT = "لطفاً با پزشک مشورت کنید تا راهنمایی دقیق‌تری دریافت نمایید."

DEFAULT_RESULT_HEADER = "نتیجه بررسی علائم"

FOLLOW_UP_SUGGESTIONS = [
    "شروع گفتگوی جدید",
    "سوال دارویی",
    "اطلاعات پزشکی",
]
