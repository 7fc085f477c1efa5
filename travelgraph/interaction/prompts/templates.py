"""
Prompt and question templates for the user-interaction sub-machine.

Questions are rendered deterministically from templates; only the reply
extraction uses the model.
"""

FIELD_LABELS = {
    "destination": "destination",
    "departure": "departure",
    "startDate": "start date",
    "endDate": "return date",
    "budget": "budget",
    "transportation": "transportation",
    "travelers": "travelers",
    "preferences": "preferences",
}

# Clauses joined into the single question sentence
FIELD_QUESTIONS = {
    "destination": "which city is your destination",
    "departure": "which city will you depart from",
    "startDate": "when do you plan to leave (YYYY-MM-DD)",
    "endDate": "when do you plan to return (YYYY-MM-DD)",
    "budget": "what is your budget per person",
    "transportation": "do you prefer flight, train or car",
    "travelers": "how many people are travelling",
    "preferences": "what do you enjoy most (food, nature, museums, nightlife...)",
}

UNKNOWN_FIELD_QUESTION = "could you tell me your {label}"

KNOWN_PREFIX = "Known: "
KNOWN_NONE = "Known: none"

# Asked when every field is known and the plan only needs fine tuning
REFINEMENT_QUESTION = "Do you prefer a relaxed or a packed pace, and are there any must-sees or things to avoid?"

EXTRACTION_FAILED_MESSAGE = "Sorry, I could not fully understand your travel details. Could you describe them again?"


EXTRACTION_PROMPT = """You are a travel information extraction assistant.

Important rules:
1. Only extract information the user stated explicitly in this conversation.
2. Never infer, guess or auto-fill any field.
3. If a value is unclear, omit the field.
4. Read the assistant's last question to understand which field the user is answering.

Known information:
{trip_plan}

Context rules:
- If the assistant asked about the destination ("where to"), the answer is the destination.
- If the assistant asked where the user departs from, the answer is the departure.
- If the assistant asked about dates or "when", the answer is startDate and/or endDate.
- If the assistant asked about the budget, the answer is the budget.

Recognizing volunteered facts:
- "I want to go to X", "visit X", "trip to X" -> destination is X
- "from X", "leaving X" -> departure is X
- a concrete date -> startDate or endDate (YYYY-MM-DD)
- "by plane", "by train", "drive" -> transportation (flight, train or car)
- a concrete amount -> budget

Strict rules:
- transportation only when the user named a mode of transport; never infer it from distance.
- budget only when the user gave a number.

Record the result by calling the `{tool_name}` tool."""
