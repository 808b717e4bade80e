"""Verification workflow prompts."""

from typing import Any, Mapping

from charity_gateway.app.prompts.base import Prompt, PromptArgument, arg

PLACEHOLDER_NAME = "[organization name]"
PLACEHOLDER_EIN = "[XX-XXXXXXX]"

GUIDE_BASE = """# Charity Verification Guide for AI Assistants

## Overview
Use the charity gateway's three primary tools for verification:
- **charity_search** - Find organizations by name, location, or keywords
- **charity_lookup** - Get detailed information using an EIN
- **public_charity_check** - Quick verification of public charity status

## Key Principles
1. Always explain what databases you're searching (IRS)
2. Use clear status indicators: ✅ ⚠️ ❌
3. Provide actionable recommendations
4. Clarify scope and limitations

## Verification Process
1. Determine what information the user has provided
2. Select appropriate tool(s) based on available information
3. Execute verification in logical sequence
4. Format response with clear status and recommendations"""

ORGANIZATION_GUIDANCE = {
    "name_only": "When user provides only organization name, always start with charity_search then follow up with charity_lookup for complete verification.",
    "ein_based": "When user provides EIN, use charity_lookup directly for comprehensive verification.",
    "suspicious": "For suspicious organizations, be extra thorough in verification and clearly communicate any red flags found.",
    "quick_check": "Use public_charity_check for fast yes/no verification when user needs immediate confirmation.",
    "location_specific": "Include city and state parameters in charity_search when location is mentioned by user.",
}

STANDARD_GUIDANCE = "Standard verification procedures apply."

VERIFIED_BLOCK = """✅ VERIFIED LEGITIMATE CHARITY
- Official Name: [name]
- EIN: [ein]
- Status: Active 501(c)(3) organization
- Ruling Date: [date]
- Tax-Deductible: Yes
- Location: [city, state]"""

RED_FLAG_BASE = """# Red Flag Detection in Charity Verification

## Common Red Flags:
- **Revoked Status** - Tax-exempt status removed by IRS
- **Conditional Status** - Compliance issues with IRS
- **Suspended Status** - Temporary suspension of operations
- **No Registration** - Not found in IRS database

## Response Protocols:"""

RED_FLAG_STATUS = {
    "revoked": """
**Revoked Status Response:**
❌ VERIFICATION FAILED
- Organization found but status shows: 'Revoked'
- Tax-exempt status was revoked in [year]
- Donations are NOT tax-deductible
- Recommendation: Do not donate to this organization""",
    "conditional": """
**Conditional Status Response:**
⚠️ CONDITIONAL STATUS
- Organization has conditional tax-exempt status
- May have compliance issues with IRS
- Recommendation: Contact organization directly or consult tax advisor""",
    "suspended": """
**Suspended Status Response:**
⚠️ SUSPENDED STATUS
- Organization operations are temporarily suspended
- Tax-exempt status may be under review
- Recommendation: Verify current status before donating""",
}

OUTCOME_TEMPLATES = {
    "verified": VERIFIED_BLOCK + "\n- Current IRS Status: In good standing",
    "failed": """❌ VERIFICATION FAILED
- Organization found but status shows: '[status]'
- Tax-exempt status was [action] in [year]
- Donations are NOT tax-deductible
- Recommendation: Do not donate to this organization""",
    "conditional": """⚠️ CONDITIONAL STATUS
- Organization has conditional tax-exempt status
- May have compliance issues with IRS
- Recommendation: Contact organization directly or consult tax advisor""",
    "not_found": """⚠️ NO MATCH FOUND
- No organization named '[name]' found in IRS database
- This may indicate:
  • Not a registered 501(c)(3) organization
  • Different official name used with IRS
  • Recently registered (database may not be updated)
- Recommendation: Request official EIN number""",
}


def render_verification_guide(arguments: Mapping[str, Any]) -> str:
    organization_type = arg(arguments, "organization_type")
    if not organization_type:
        return GUIDE_BASE
    guidance = ORGANIZATION_GUIDANCE.get(organization_type, STANDARD_GUIDANCE)
    return f"{GUIDE_BASE}\n\n## Specific Guidance for: {organization_type}\n{guidance}"


def render_legitimacy_workflow(arguments: Mapping[str, Any]) -> str:
    verification_type = arg(arguments, "verification_type")
    name = arg(arguments, "organization_name") or PLACEHOLDER_NAME
    ein = arg(arguments, "ein") or PLACEHOLDER_EIN
    location = arg(arguments, "location")

    if verification_type == "organization_name":
        return f"""# Organization Name Verification Workflow

**Step 1: Search for the organization**
```
Tool: charity_search
Input: {{"query": "{name}"}}
```

**Step 2: If found, get detailed verification**
```
Tool: charity_lookup
Input: {{"ein": "[ein_from_search_results]"}}
```

**Response Format:**
✅ VERIFIED LEGITIMATE CHARITY
- Official Name: [name]
- EIN: [ein]
- Status: [status description]
- Ruling Date: [date established]
- Tax-Deductible: [yes/no]
- Location: [address]
- Current IRS Status: [in good standing/issues]"""

    if verification_type == "ein_verification":
        return f"""# EIN-Based Verification Workflow

**Direct lookup (single step):**
```
Tool: charity_lookup
Input: {{"ein": "{ein}"}}
```

**Response Format:**
{VERIFIED_BLOCK}
- Current Status: In good standing with IRS"""

    if verification_type == "quick_status":
        return f"""# Quick Status Check Workflow

**Quick verification:**
```
Tool: public_charity_check
Input: {{"ein": "{ein}"}}
```

**Response Format:**
✅ PUBLIC CHARITY VERIFIED
- EIN [XX-XXXXXXX] is a legitimate public charity
- Donations are tax-deductible
- Status: Active"""

    if verification_type == "location_specific":
        text = f"""# Location-Specific Verification Workflow

**Location-specific search:**
```
Tool: charity_search
Input: {{
  "query": "{name}",
  "city": "[city]",
  "state": "[state]"
}}
```

Then follow up with charity_lookup for full verification.
"""
        if location:
            text += f"\nSearching in: {location}"
        return text

    if verification_type == "suspicious_org":
        display_name = arg(arguments, "organization_name") or "[name]"
        return f"""# Suspicious Organization Verification Workflow

**Step 1: Search for organization**
```
Tool: charity_search
Input: {{"query": "{name}"}}
```

**Possible Outcomes:**

**A) No Results:**
⚠️ NO MATCH FOUND
- No organization named '{display_name}' found in IRS database
- This may indicate:
  • Not a registered 501(c)(3) organization
  • Different official name used with IRS
  • Recently registered (database may not be updated)
- Recommendation: Request EIN or official legal name

**B) Multiple Generic Matches:**
⚠️ MULTIPLE ORGANIZATIONS FOUND
- Found [X] organizations with similar names
- Need more specific information:
  • City/State location
  • EIN number
  • Full official name
- Cannot verify without additional details

**C) Single Clear Match:**
Proceed to Step 2 for full verification"""

    return (
        "Please specify a verification_type: organization_name, ein_verification, "
        "quick_status, location_specific, or suspicious_org"
    )


def render_red_flag_guidance(arguments: Mapping[str, Any]) -> str:
    status_type = arg(arguments, "status_type")
    if status_type in RED_FLAG_STATUS:
        return RED_FLAG_BASE + RED_FLAG_STATUS[status_type]
    return RED_FLAG_BASE + "\n".join(RED_FLAG_STATUS.values())


def render_response_template(arguments: Mapping[str, Any]) -> str:
    return OUTCOME_TEMPLATES.get(
        arg(arguments, "outcome_type"),
        "Please specify outcome_type: verified, failed, conditional, or not_found",
    )


VERIFICATION_PROMPTS = [
    Prompt(
        name="charity_verification_guide",
        description="Complete guide for AI assistants to perform charity legitimacy verification using the gateway tools",
        arguments=[
            PromptArgument(
                name="organization_type",
                description="Type of verification needed (name_only, ein_based, suspicious, quick_check, location_specific)",
            ),
        ],
        result_description="Complete charity verification guide for AI assistants",
        render=render_verification_guide,
    ),
    Prompt(
        name="basic_legitimacy_workflow",
        description="Step-by-step workflow for basic charity legitimacy verification",
        arguments=[
            PromptArgument(
                name="verification_type",
                description="Type of verification (organization_name, ein_verification, suspicious_org, quick_status, location_specific)",
                required=True,
            ),
            PromptArgument(name="organization_name", description="Name of the organization to verify"),
            PromptArgument(name="ein", description="EIN number for direct verification"),
            PromptArgument(name="location", description="City and state for location-specific searches"),
        ],
        result_description="Basic legitimacy verification workflow",
        render=render_legitimacy_workflow,
    ),
    Prompt(
        name="red_flag_detection",
        description="Guidance for detecting and handling charity verification red flags",
        arguments=[
            PromptArgument(
                name="status_type",
                description="Type of problematic status (revoked, conditional, suspended)",
            ),
        ],
        result_description="Red flag detection guidance",
        render=render_red_flag_guidance,
    ),
    Prompt(
        name="verification_response_templates",
        description="Response templates for different charity verification outcomes",
        arguments=[
            PromptArgument(
                name="outcome_type",
                description="Type of verification outcome (verified, failed, conditional, not_found)",
                required=True,
            ),
        ],
        result_description="Response templates for verification outcomes",
        render=render_response_template,
    ),
]
