from typing import Any, Dict, List, Tuple

import pandas as pd

FINDING_COLUMNS = ['parameter', 'value', 'unit', 'referenceRange', 'status', 'category']
ABNORMAL_COLUMNS = ['parameter', 'value', 'expectedRange', 'severity']
REPORT_COLUMNS = ['fileName', 'fileType', 'fileSize', 'createdAt']

STATUS_ICONS = {
    'normal': '🟢',
    'low': '🔵',
    'high': '🟠',
    'critical': '🔴',
}


def _frame(rows: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(rows or [], columns=columns)


def findings_frame(analysis: Dict[str, Any]) -> pd.DataFrame:
    df = _frame(analysis.get('findings', []), FINDING_COLUMNS)
    df['status'] = df['status'].map(lambda s: f"{STATUS_ICONS.get(s, '')} {s}".strip() if isinstance(s, str) else s)
    return df


def abnormal_values_frame(analysis: Dict[str, Any]) -> pd.DataFrame:
    return _frame(analysis.get('abnormalValues', []), ABNORMAL_COLUMNS)


def reports_frame(dashboard_data: Dict[str, Any]) -> pd.DataFrame:
    return _frame(dashboard_data.get('reports', []), REPORT_COLUMNS)


def recommendation_groups(analysis: Dict[str, Any]) -> List[Tuple[str, List[str]]]:
    """
    Normalizes both recommendation formats to (heading, items) pairs.
    Legacy analyses store a flat list of strings.
    """
    recommendations = analysis.get('recommendations') or []
    if recommendations and all(isinstance(r, str) for r in recommendations):
        return [('Recommendations', list(recommendations))]
    return [(group.get('category', 'Recommendations'), list(group.get('items', []))) for group in recommendations]


def failure_message(envelope: Dict[str, Any]) -> str:
    message = envelope.get('error') or 'Analysis failed.'
    if envelope.get('details'):
        message += f"\n\n{envelope['details']}"
    return message
