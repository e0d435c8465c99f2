"""
Prompt templates for the Gemini document calls.

HEALTH_DOCUMENT_CHECK_PROMPT drives the classification call and
JSON_ANALYSIS_PROMPT the structured extraction. not_health_document_details()
builds the explanation returned to the caller when a document is rejected.
"""

HEALTH_DOCUMENT_CHECK_PROMPT = """
Analyze this document and determine if it is a health/medical document.

A health/medical document includes:
- Lab test results (blood tests, urine tests, etc.)
- Medical reports (X-ray, MRI, CT scan, ultrasound reports)
- Doctor's notes or prescriptions
- Vaccination records
- Health screening results
- Medical diagnosis or treatment plans
- Health monitoring data
- Medical imaging reports

Respond ONLY with a JSON object in this format:
{
  "isHealthDocument": true/false,
  "confidence": 0-100,
  "documentType": "Brief description of document type",
  "reason": "Explanation of why this is or isn't a health document"
}

Be strict: if the document is clearly NOT related to health/medical data, set isHealthDocument to false.
"""

JSON_ANALYSIS_PROMPT = """
Analyze this medical/health document in comprehensive detail and respond in the following JSON format:

{
  "title": "Generate a clear, descriptive title based on document content",
  "documentType": "Document type (Blood Test, Medical Report, X-Ray Report, etc.)",
  "date": "Document date (if available)",
  "patientInfo": {
    "name": "Patient name (if available)",
    "age": "Age (if available)",
    "gender": "Gender (if available)",
    "id": "Patient ID/protocol number (if available)"
  },
  "findings": [
    {
      "parameter": "Test/parameter name",
      "value": "Measured value",
      "unit": "Unit (mg/dL, g/L, etc.)",
      "referenceRange": "Normal reference range",
      "status": "normal/low/high/critical",
      "category": "Category (Hemogram, Biochemistry, etc.)",
      "clinicalSignificance": "Detailed explanation of what this value means for health (2-3 sentences)"
    }
  ],
  "abnormalValues": [
    {
      "parameter": "Abnormal parameter name",
      "value": "Measured value",
      "expectedRange": "Expected value range",
      "severity": "mild/moderate/severe",
      "meaning": "Detailed explanation of possible meaning and significance (3-4 sentences)",
      "possibleCauses": ["Cause 1", "Cause 2", "Cause 3"],
      "recommendedActions": ["Action 1", "Action 2"]
    }
  ],
  "summary": "Comprehensive summary of overall health status (4-6 sentences minimum). Include overview of tests, general health assessment, most significant findings, and risk level.",
  "detailedAnalysis": "In-depth analysis of the health data, including: patterns observed, correlations between parameters, overall health trends, and clinical interpretation. (Minimum 200 words)",
  "medicalContext": "Educational information about what these tests measure, why they're important, what normal ranges mean, and common causes of abnormalities. (Minimum 150 words)",
  "recommendations": [
    {
      "category": "Immediate Actions",
      "items": ["Detailed recommendation 1 with reasoning", "Detailed recommendation 2 with reasoning"]
    },
    {
      "category": "Lifestyle Modifications",
      "items": ["Detailed lifestyle advice", "Nutritional recommendations", "Exercise suggestions"]
    },
    {
      "category": "Follow-up Care",
      "items": ["When to schedule next tests", "Which parameters to monitor", "When to consult physician"]
    }
  ],
  "riskAssessment": {
    "level": "low/moderate/high",
    "factors": ["Risk factor 1 with explanation", "Risk factor 2 with explanation"],
    "followUpRequired": true/false,
    "followUpTiming": "Recommended timing for next check-up"
  },
  "confidence": 85,
  "disclaimer": "This AI analysis is for informational purposes only and does not replace professional medical advice. Always consult with a qualified healthcare provider for medical decisions."
}

IMPORTANT:
- Respond ONLY in JSON format, no additional explanations or markdown code blocks
- Write ALL content in ENGLISH
- Generate a descriptive, specific title based on document content
- Provide DETAILED explanations (comprehensive analysis, minimum 500 words total across all fields)
- If information is not available in the document, leave the field empty or null
- Include medical terms in English with clear explanations
- Explain clinical significance for ALL parameters
- Highlight critical values with detailed reasoning
- Explain possible causes and significance of abnormal values in detail
- Group findings by category (hematology, chemistry, etc.)
- Provide educational medical context
- Use professional medical language while remaining accessible
"""

ACCEPTED_DOCUMENT_CATEGORIES = [
    "Laboratory test results (blood tests, urine analysis, etc.)",
    "Medical imaging reports (X-ray, MRI, CT scan, ultrasound)",
    "Doctor's medical reports and prescriptions",
    "Vaccination records and immunization certificates",
    "Health screening and check-up results",
    "Medical diagnosis and treatment plans",
    "Chronic disease monitoring reports",
    "Medical examination findings",
]

REMEDIATION_HINTS = [
    "The document is clearly readable and not corrupted",
    "Medical terminology and test results are visible",
    "The document format is supported (PDF, images, DOC, DOCX)",
]

TRUSTED_SOURCES = [
    "Hospitals and medical laboratories",
    "Licensed healthcare providers",
    "Certified medical diagnostic centers",
    "Official health institutions",
]


def not_health_document_details(document_type: str, confidence: float, reason: str) -> str:
    """Builds the explanation shown when the classifier rejects a document."""
    categories = "\n".join(f"• {category}" for category in ACCEPTED_DOCUMENT_CATEGORIES)
    hints = "\n".join(f"{i}. {hint}" for i, hint in enumerate(REMEDIATION_HINTS, start=1))
    sources = "\n".join(f"- {source}" for source in TRUSTED_SOURCES)
    return (
        "Document Analysis:\n\n"
        f"Type: {document_type}\n"
        f"Confidence: {confidence:g}%\n\n"
        f"Reason: {reason}\n\n"
        "This system is designed exclusively for analyzing medical and health-related "
        "documents such as:\n"
        f"{categories}\n\n"
        "The uploaded document does not appear to contain medical or health data. "
        "Please upload a valid health document for analysis.\n\n"
        "If you believe this is a medical document, please ensure:\n"
        f"{hints}\n\n"
        "For accurate health analysis, please provide documents from:\n"
        f"{sources}"
    )
