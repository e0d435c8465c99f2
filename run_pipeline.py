import os
import logging
import mimetypes
from typing import Any, Dict, List, Tuple

import pandas as pd
from tqdm import tqdm

from src.api.main import build_pipeline
from src.config import load_app_config
from src.data_processing.pipeline import HealthAnalysisPipeline
from src.data_processing.validation import validate_upload
from src.errors import HealthAnalysisError

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logging.getLogger('google.generativeai').setLevel(logging.WARNING)

EXTENSION_TYPES = {
    '.pdf': 'application/pdf',
    '.csv': 'text/csv',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
}


def guess_content_type(file_path: str) -> str:
    extension = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TYPES.get(extension) or mimetypes.guess_type(file_path)[0] or 'application/octet-stream'


def process_reports(
    pipeline: HealthAnalysisPipeline,
    input_dir: str,
    wallet_address: str,
    upload_config: Dict[str, Any],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Runs every file in input_dir through the analysis pipeline.

    Returns one row per finding of the successful analyses, and one row per
    file that was rejected or failed.
    """
    all_files = sorted(
        os.path.join(input_dir, f) for f in os.listdir(input_dir)
        if os.path.isfile(os.path.join(input_dir, f))
    )
    logging.info(f"Found {len(all_files)} files to process.")

    finding_rows = []
    failures = []
    for file_path in tqdm(all_files, desc="Analysing Reports"):
        file_name = os.path.basename(file_path)
        with open(file_path, 'rb') as f:
            content = f.read()

        try:
            document = validate_upload(
                file_name,
                guess_content_type(file_path),
                content,
                wallet_address,
                allowed_types=upload_config['allowed_file_types'],
                max_size=upload_config['max_file_size'],
            )
        except HealthAnalysisError as e:
            logging.warning(f"Skipping {file_name}: {e}")
            failures.append({'source_file': file_name, 'kind': e.kind, 'error': e.label, 'details': e.details})
            continue

        outcome = pipeline.run(document)
        envelope = outcome.envelope
        if not outcome.succeeded:
            failures.append({
                'source_file': file_name, 'kind': envelope.kind, 'error': envelope.error, 'details': envelope.details,
            })
            continue

        analysis = envelope.analysis
        for finding in analysis.findings:
            row = finding.model_dump(by_alias=True)
            row['title'] = analysis.title
            row['patient_name'] = analysis.patient_info.name if analysis.patient_info else None
            row['source_file'] = file_name
            finding_rows.append(row)

    return finding_rows, failures


def main():
    logging.info("--- Starting Health Document Batch Analysis ---")

    params = load_app_config()
    batch_config = params['batch_config']
    input_dir = batch_config['input_dir']
    if not os.path.isdir(input_dir):
        logging.error(f"Input directory {input_dir} not found! Please create it.")
        return

    pipeline = build_pipeline(params)
    finding_rows, failures = process_reports(
        pipeline, input_dir, batch_config['wallet_address'], params['upload_config']
    )

    for failure in failures:
        logging.warning(f"{failure['source_file']}: {failure['kind']} - {failure['error']}")

    if finding_rows:
        output_path = batch_config['output_path']
        os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
        df = pd.DataFrame(finding_rows)
        df.to_csv(output_path, index=False)
        logging.info("--- Batch Finished ---")
        logging.info(f"Saved {len(df)} findings to {output_path} ({len(failures)} files failed).")
    else:
        logging.warning("No findings were extracted from any file.")


if __name__ == '__main__':
    main()
