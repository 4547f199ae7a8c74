# feedcheck/sources.py

import csv
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _keep(url) -> bool:
    return isinstance(url, str) and bool(url.strip()) and not url.strip().startswith("#")


def _unique(urls) -> list[str]:
    return list(dict.fromkeys(url.strip() for url in urls))


def read_csv_urls(path, has_header: bool = True) -> list[str]:
    """
    Return the first column of every row of a CSV file.

    Blank cells and cells starting with ``#`` are skipped, as are rows the
    csv module cannot parse (a warning names the line).
    """
    urls = []
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f, skipinitialspace=True)
        if has_header:
            next(reader, None)

        while True:
            try:
                record = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                logger.warning("Skipping line %d due to error: %s", reader.line_num, e)
                continue
            if record and _keep(record[0]):
                urls.append(record[0])

    return _unique(urls)


def _feed_url(entry, where: str) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        url = entry.get("url")
        if not isinstance(url, str):
            raise ValueError(f"Feed entry in {where} missing 'url'")
        return url
    raise ValueError(f"Feed entry in {where} must be a string or mapping")


def read_yaml_urls(path) -> list[str]:
    """
    Read feed URLs from YAML.

    Two shapes are accepted: a plain list of entries, or a mapping of
    topics::

        topics:
          security:
            feeds:
              - https://example.com/feed
              - url: https://another.example/rss

    An entry is a URL string or a mapping with a ``url`` key.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{path} contains invalid YAML: {e}") from e

    if data is None:
        return []

    urls = []
    if isinstance(data, list):
        urls = [_feed_url(entry, str(path)) for entry in data]
    elif isinstance(data, dict) and "topics" in data:
        topics = data["topics"]
        if not isinstance(topics, dict):
            raise ValueError("'topics' value must be a mapping")
        for topic_name, topic_cfg in topics.items():
            if not isinstance(topic_cfg, dict):
                raise ValueError(f"Topic '{topic_name}' definition must be a mapping")
            feeds = topic_cfg.get("feeds") or []
            if not isinstance(feeds, list):
                raise ValueError(f"Topic '{topic_name}' feeds must be a list")
            urls.extend(_feed_url(entry, f"topic '{topic_name}'") for entry in feeds)
    else:
        raise ValueError(f"{path} must hold a list of feeds or a 'topics' mapping")

    return _unique(url for url in urls if _keep(url))


def load_urls(path, has_header: bool = True) -> list[str]:
    if Path(path).suffix.lower() in YAML_SUFFIXES:
        return read_yaml_urls(path)
    return read_csv_urls(path, has_header=has_header)
