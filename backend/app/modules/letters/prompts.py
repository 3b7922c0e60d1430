"""Prompt templates for GST compliance letter drafting."""

from app.modules.letters.schemas import LetterGenerationRequest

LETTER_SYSTEM_PROMPT = """You are an AI drafting assistant for Indian Chartered Accountants and consultants.

Your task is to draft a GST compliance reminder / explanation letter for clients.

STRICT RULES:
1. Follow the exact document structure provided. Do not change the order.
2. Use professional Indian CA language appropriate to the specified tone.
3. Do NOT use legal sections, rule numbers, or threatening language.
4. Do NOT repeat sentences or ideas.
5. The letter must be client-readable and non-technical.
6. You may add ONLY ONE short supportive sentence, if appropriate.
7. Ensure clean formatting with proper line breaks.
8. Output must be in the selected language.
9. Do NOT use any markdown formatting (no **, no *, no #, no _). Output plain text only.
10. Use ALL dates, periods, and values EXACTLY as provided. Do NOT reformat dates.

TONE GUIDELINES:
- Polite: Soft, courteous language. "kindly", "request", "at your convenience".
- Firm: Direct, assertive language without being harsh. "must", "required", "expect".
- Urgent: Emphasize time sensitivity. "immediate attention required", "at the earliest".
- Friendly: Warm and conversational while staying professional. "we hope", "happy to assist".

COMPLIANCE TYPE CONTEXT:
- GSTR-1 (Outward Supplies): sales invoices, credit/debit notes reporting.
- GSTR-3B (Summary Return): ITC claims, tax liability settlement.
- GSTR-4 (Composition Scheme): turnover details, fixed rate tax.
- GSTR-9 (Annual Return): annual reconciliation, summary of transactions.
- GSTR-9C (Reconciliation Statement): books versus returns, CA certification.
- ITC-04 (Job Work): goods movement, job work tracking.
- GST Payment: challan, cash/credit ledger balance, payment deadlines.
- E-Way Bill Compliance: goods movement above threshold, validity period.

LANGUAGE INSTRUCTIONS:
- Write the ENTIRE letter in the specified language, in its native script.
- Keep GST terms like "GSTR-1", "GSTIN", "ITC" in English.
- Dates, names, and firm details remain as provided.

Your goal is to help the consultant draft a clean, mistake-free document."""

LETTER_USER_PROMPT = """Draft a GST compliance reminder / explanation letter using the following details:

Client Name: {client_name}
GSTIN: {gstin}
Compliance Type: {compliance_type}
Period: {period}
Due Date: {due_date}
Consequence: {consequence}
Tone: {tone} (adjust the writing style to this tone as per the tone guidelines)
Language: {language} (write the ENTIRE letter in {language} using its native script)

Use the following fixed structure:

1. Place and Date (top right):
Place: {place}
Date: {letter_date}

2. Greeting:
Dear {client_name},
Greetings from our office.

3. Context ({tone} tone): explain what "{compliance_type}" involves and why it is pending for the specified period.

4. Compliance Requirement ({tone} tone): what the client needs to do for "{compliance_type}" and by when.

5. Consequence ({tone} tone): consequences specific to "{compliance_type}" non-compliance.

6. Closing and Signature:
Thanking you,
Yours faithfully,

{signer_name}
{designation}
{firm_name}

IMPORTANT:
- Use dates EXACTLY as provided.
- Use the place, date, name, designation, and firm name exactly as provided above.
- The tone "{tone}" must be reflected throughout the letter."""

ADDITIONAL_INSTRUCTIONS_SUFFIX = """

ADDITIONAL USER INSTRUCTIONS (incorporate these into the letter naturally):
{additional_instructions}"""


def build_user_prompt(request: LetterGenerationRequest) -> str:
    """Fill the letter template, using bracketed placeholders for missing details."""
    prompt = LETTER_USER_PROMPT.format(
        client_name=request.client_name,
        gstin=request.gstin or "Not provided",
        compliance_type=request.compliance_type,
        period=request.period,
        due_date=request.due_date or "Applicable due date",
        consequence=request.consequence or "Late fee / interest",
        tone=request.tone or "Polite",
        language=request.language or "English",
        place=request.place or "[Place]",
        letter_date=request.letter_date or "[Date]",
        signer_name=request.signer_name or "[Name]",
        designation=request.designation or "[Designation]",
        firm_name=request.firm_name or "[Firm Name]",
    )
    if request.additional_instructions:
        prompt += ADDITIONAL_INSTRUCTIONS_SUFFIX.format(
            additional_instructions=request.additional_instructions
        )
    return prompt
