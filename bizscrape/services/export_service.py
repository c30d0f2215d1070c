"""
Data Export Service
Handles exporting business records to CSV and JSON files
"""

import csv
import io
import json
import os
from typing import List, Dict
from datetime import datetime
from loguru import logger
import pandas as pd

from bizscrape.models.business import BusinessData
from bizscrape.config import Config
from bizscrape.services.record_normalizer import order_fields


def _cell(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def records_to_dataframe(records: List[BusinessData]) -> pd.DataFrame:
    """One column per field present in any record, priority fields first"""
    columns = order_fields(key for record in records for key in record.keys())
    rows = [{column: _cell(record.get(column)) for column in columns} for record in records]
    return pd.DataFrame(rows, columns=columns)


def to_csv(records: List[BusinessData]) -> str:
    """
    Serialize records to CSV text

    The header row is unquoted; every value is quoted with embedded quotes doubled.
    Rows are joined with '\\n' and there is no trailing newline.
    """
    if not records:
        return ''

    df = records_to_dataframe(records)
    header = ','.join(df.columns)
    body = df.to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_ALL,
        lineterminator='\n'
    )
    rows = body.rstrip('\n')
    return f"{header}\n{rows}"


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Read CSV text produced by to_csv back into field dictionaries"""
    if not text or not text.strip():
        return []

    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    return df.to_dict(orient='records')


class ExportService:
    """Service for exporting business data"""

    def __init__(self, export_folder: str = None):
        """Initialize export service"""
        self.config = Config()
        self.export_folder = export_folder or self.config.EXPORT_FOLDER
        os.makedirs(self.export_folder, exist_ok=True)

    def _filepath(self, filename: str) -> str:
        # Never write outside the export folder
        return os.path.join(self.export_folder, os.path.basename(filename))

    def export_to_csv(self, records: List[BusinessData], filename: str) -> str:
        """Export records to a UTF-8 CSV file"""

        filepath = self._filepath(filename)
        records = records[:self.config.MAX_EXPORT_ROWS]

        try:
            with open(filepath, 'w', encoding='utf-8', newline='') as f:
                f.write(to_csv(records))

            logger.info(f"Exported {len(records)} records to CSV: {filepath}")
            return filepath

        except Exception as e:
            logger.error(f"Error exporting to CSV: {str(e)}")
            raise

    def export_to_json(self, records: List[BusinessData], filename: str) -> str:
        """Export records to JSON file"""

        filepath = self._filepath(filename)
        records = records[:self.config.MAX_EXPORT_ROWS]

        try:
            data = {
                'exported_at': datetime.utcnow().isoformat(),
                'total_records': len(records),
                'records': [record.to_dict() for record in records]
            }

            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, default=str)

            logger.info(f"Exported {len(records)} records to JSON: {filepath}")
            return filepath

        except Exception as e:
            logger.error(f"Error exporting to JSON: {str(e)}")
            raise

    @staticmethod
    def default_filename(extension: str = 'csv') -> str:
        return f"business-data-{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.{extension}"
