"""
Scrape Run Data Models
Configuration, crawl policy and aggregate result of a single scrape run
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List, Any
import uuid

from bizscrape.models.business import BusinessData


FALSE_STRINGS = {'false', '0', 'no', 'off', ''}


def parse_flag(value) -> bool:
    """Boolean from JSON or form input; "false", "0", "no" and "off" are False"""
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


class ResultStatus(str, Enum):
    """Scrape run status enumeration"""
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class Location:
    """Optional city/state filter"""
    city: Optional[str] = None
    state: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not ((self.city or '').strip() or (self.state or '').strip())

    def to_dict(self) -> Dict:
        return {'city': self.city, 'state': self.state}


@dataclass(frozen=True)
class PolicyFlags:
    """Crawl policy toggles chosen by the operator"""
    respect_robots_txt: bool = True
    use_rotating_proxies: bool = False
    use_random_user_agents: bool = True
    base_delay_seconds: float = 2

    def to_dict(self) -> Dict:
        return {
            'respect_robots_txt': self.respect_robots_txt,
            'use_rotating_proxies': self.use_rotating_proxies,
            'use_random_user_agents': self.use_random_user_agents,
            'base_delay_seconds': self.base_delay_seconds,
        }


@dataclass(frozen=True)
class ScrapeConfig:
    """Inputs to a single scrape run (immutable per run)"""

    url: Optional[str] = None
    search_terms: Optional[str] = None
    location: Location = field(default_factory=Location)
    industry: Optional[str] = None
    selectors: Dict[str, str] = field(default_factory=dict)
    data_fields: List[str] = field(default_factory=list)
    policy: PolicyFlags = field(default_factory=PolicyFlags)

    @property
    def is_search(self) -> bool:
        """Runs without a target URL go through a search engine"""
        return not (self.url or '').strip()

    def selector(self, name: str) -> Optional[str]:
        value = self.selectors.get(name)
        if value and value.strip():
            return value.strip()
        return None

    def to_dict(self) -> Dict:
        return {
            'url': self.url,
            'search_terms': self.search_terms,
            'location': self.location.to_dict(),
            'industry': self.industry,
            'selectors': dict(self.selectors),
            'data_fields': list(self.data_fields),
            'policy': self.policy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ScrapeConfig':
        """Build a config from a request payload"""
        location = data.get('location') or {}
        policy = data.get('policy') or {}

        # Accept flat policy keys as well as the nested form
        def flag(name, default):
            if name in policy:
                return policy[name]
            return data.get(name, default)

        selectors = {
            key: value for key, value in (data.get('selectors') or {}).items()
            if isinstance(value, str) and value.strip()
        }

        return cls(
            url=(data.get('url') or '').strip() or None,
            search_terms=data.get('search_terms'),
            location=Location(
                city=(location.get('city') or '').strip() or None,
                state=(location.get('state') or '').strip() or None,
            ),
            industry=(data.get('industry') or '').strip() or None,
            selectors=selectors,
            data_fields=list(data.get('data_fields') or []),
            policy=PolicyFlags(
                respect_robots_txt=parse_flag(flag('respect_robots_txt', True)),
                use_rotating_proxies=parse_flag(flag('use_rotating_proxies', False)),
                use_random_user_agents=parse_flag(flag('use_random_user_agents', True)),
                base_delay_seconds=float(flag('base_delay_seconds', 2)),
            ),
        )


@dataclass(frozen=True)
class ProcessingConfig:
    """Post-processing settings recorded alongside a result"""
    model: str = 'rules'
    instructions: str = ''
    temperature: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            'model': self.model,
            'instructions': self.instructions,
            'temperature': self.temperature,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ProcessingConfig':
        data = data or {}
        return cls(
            model=data.get('model', 'rules'),
            instructions=data.get('instructions', ''),
            temperature=data.get('temperature'),
        )


@dataclass
class RobotsPolicy:
    """Rules derived from a domain's robots.txt"""
    allowed_paths: List[str] = field(default_factory=list)
    disallowed_paths: List[str] = field(default_factory=list)
    crawl_delay: Optional[int] = None

    @classmethod
    def default(cls) -> 'RobotsPolicy':
        """Permissive rules used when robots.txt cannot be fetched"""
        return cls(allowed_paths=['/'], disallowed_paths=[], crawl_delay=None)

    def is_path_allowed(self, path: str) -> bool:
        """Disallow prefixes win; everything else is allowed"""
        if any(path.startswith(prefix) for prefix in self.disallowed_paths):
            return False
        if any(path.startswith(prefix) for prefix in self.allowed_paths):
            return True
        return True


@dataclass
class PermissionResult:
    """Outcome of a crawl permission check"""
    allowed: bool
    reason: Optional[str] = None
    recommended_delay: Optional[float] = None
    restrictive: bool = False

    def to_dict(self) -> Dict:
        return {
            'allowed': self.allowed,
            'reason': self.reason,
            'recommended_delay': self.recommended_delay,
            'restrictive': self.restrictive,
        }


@dataclass
class RawListing:
    """One candidate listing before (or alongside) extraction"""
    raw_html: str
    url: Optional[str] = None
    extracted: Optional[BusinessData] = None

    def to_dict(self) -> Dict:
        return {
            'raw_html': self.raw_html,
            'url': self.url,
            'extracted': self.extracted.to_dict() if self.extracted else None,
        }


@dataclass
class ScrapingResult:
    """Aggregate of one scrape run, owned by the invoking session"""

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    raw_data: List[RawListing] = field(default_factory=list)
    processed_data: List[BusinessData] = field(default_factory=list)
    status: ResultStatus = ResultStatus.IDLE
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def start(self) -> 'ScrapingResult':
        self.status = ResultStatus.LOADING
        self.started_at = datetime.utcnow()
        return self

    def succeed(self, records: List[BusinessData]) -> 'ScrapingResult':
        self.processed_data = records
        self.status = ResultStatus.SUCCESS
        self.completed_at = datetime.utcnow()
        return self

    def fail(self, message: str) -> 'ScrapingResult':
        self.status = ResultStatus.ERROR
        self.error = message
        self.completed_at = datetime.utcnow()
        return self

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def to_dict(self, include_raw: bool = True) -> Dict[str, Any]:
        data = {
            'run_id': self.run_id,
            'processed_data': [record.to_dict() for record in self.processed_data],
            'status': self.status.value,
            'error': self.error,
            'warnings': list(self.warnings),
            'total_records': len(self.processed_data),
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
        if include_raw:
            data['raw_data'] = [listing.to_dict() for listing in self.raw_data]
        return data
