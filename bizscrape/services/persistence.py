"""
Persistence Gateway
JSON file store for scrape configs, processing configs, run results and business records
"""

from typing import List, Optional, Dict, Any
from datetime import datetime
from pathlib import Path
from loguru import logger
import threading
import json
import uuid

from bizscrape.config import Config
from bizscrape.models.business import BusinessData, CORE_FIELDS
from bizscrape.models.scrape import ScrapeConfig, ProcessingConfig, ScrapingResult
from bizscrape.services.errors import PersistenceError


COLLECTIONS = ('scrape_configs', 'processing_configs', 'results', 'business_records')


def business_row(record: BusinessData, result_id: str) -> Dict[str, Any]:
    """Fixed schema columns plus an additional_data bag for everything else"""
    row = {
        'id': str(uuid.uuid4()),
        'result_id': result_id,
        'created_at': datetime.utcnow().isoformat(),
    }
    for key in CORE_FIELDS:
        row[key] = record.get(key)
    row['additional_data'] = dict(record.additional_fields)
    return row


class PersistenceGateway:
    """Store backed by a single JSON document"""

    def __init__(self, data_file: Optional[str] = None):
        self.config = Config()
        self._data_file = Path(data_file or Path(self.config.DATA_FOLDER) / 'bizscrape.json')
        self._lock = threading.Lock()

    def _empty(self) -> Dict[str, List[Dict]]:
        return {name: [] for name in COLLECTIONS}

    def _load(self) -> Dict[str, List[Dict]]:
        if not self._data_file.exists():
            return self._empty()
        try:
            with open(self._data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading store {self._data_file}: {str(e)}")
            raise PersistenceError(f"Could not read store: {str(e)}") from e

        store = self._empty()
        store.update({name: data.get(name, []) for name in COLLECTIONS})
        return store

    def _save(self, store: Dict[str, List[Dict]]) -> None:
        try:
            self._data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._data_file, 'w', encoding='utf-8') as f:
                json.dump(store, f, indent=2, default=str)
        except (OSError, TypeError) as e:
            logger.error(f"Error saving store {self._data_file}: {str(e)}")
            raise PersistenceError(f"Could not write store: {str(e)}") from e

    def _insert(self, collection: str, document: Dict[str, Any]) -> str:
        document = dict(document)
        document.setdefault('id', str(uuid.uuid4()))
        document.setdefault('created_at', datetime.utcnow().isoformat())

        with self._lock:
            store = self._load()
            store[collection].append(document)
            self._save(store)

        logger.debug(f"Saved {collection} entry {document['id']}")
        return document['id']

    def _list(self, collection: str, limit: Optional[int] = None) -> List[Dict]:
        with self._lock:
            items = self._load()[collection]
        items = sorted(items, key=lambda item: item.get('created_at', ''), reverse=True)
        return items[:limit] if limit is not None else items

    def save_scrape_config(self, config: ScrapeConfig) -> str:
        """Persist a run configuration, returns its id"""
        return self._insert('scrape_configs', config.to_dict())

    def save_processing_config(self, config: ProcessingConfig) -> str:
        return self._insert('processing_configs', config.to_dict())

    def save_result(self, scrape_id: str, processing_id: Optional[str], result: ScrapingResult) -> str:
        """
        Persist a run result and one business row per processed record

        Args:
            scrape_id: Id returned by save_scrape_config
            processing_id: Id returned by save_processing_config, if any
            result: Finished run

        Returns:
            Id of the stored result
        """
        result_id = str(uuid.uuid4())
        summary = result.to_dict(include_raw=False)
        summary.pop('processed_data', None)
        summary.update({
            'id': result_id,
            'scrape_config_id': scrape_id,
            'processing_config_id': processing_id,
            'created_at': datetime.utcnow().isoformat(),
        })
        rows = [business_row(record, result_id) for record in result.processed_data]

        with self._lock:
            store = self._load()
            store['results'].append(summary)
            store['business_records'].extend(rows)
            self._save(store)

        logger.info(f"Saved result {result_id} with {len(rows)} business records")
        return result_id

    def list_configs(self) -> List[Dict]:
        return self._list('scrape_configs')

    def list_processing_configs(self) -> List[Dict]:
        return self._list('processing_configs')

    def list_results(self, limit: int = 10) -> List[Dict]:
        """Most recent results first"""
        return self._list('results', limit)

    def list_records(self, result_id: str) -> List[Dict]:
        """Business rows belonging to one result"""
        return [row for row in self._list('business_records') if row.get('result_id') == result_id]

    def list_all_records(self, limit: int = 1000) -> List[Dict]:
        return self._list('business_records', limit)

    def delete_record(self, record_id: str) -> bool:
        """Delete a business row, returns False when it does not exist"""
        with self._lock:
            store = self._load()
            remaining = [row for row in store['business_records'] if row.get('id') != record_id]
            if len(remaining) == len(store['business_records']):
                return False
            store['business_records'] = remaining
            self._save(store)

        logger.info(f"Deleted business record: {record_id}")
        return True
