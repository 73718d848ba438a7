"""Convenience helpers for running the Name Normalizer on a spreadsheet."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd
from tqdm import tqdm

from .host import StaticCreatorSource
from .models import AnalysisResult, ApplyResult, CreatorRecord, ProgressEvent, collapse_creators
from .parsing import NameParser
from .pipeline import NameNormalizer, NormalizerConfig


def normalize_file(
    input_path: str | Path,
    output_path: str | Path,
    config: Optional[NormalizerConfig] = None,
    name_column: str | None = None,
    updates_path: str | Path | None = None,
    accept_all: bool = False,
    use_tqdm: bool = True,
) -> AnalysisResult | None:
    """Analyze the creators in `input_path` and write the suggestions to `output_path`."""

    input_path = Path(input_path)
    output_path = Path(output_path)

    try:
        dataframe = _load_dataframe(input_path)
    except FileNotFoundError:
        print(f"ERROR: Input file not found at '{input_path}'.")
        return None
    except ValueError:
        print(f"ERROR: Unsupported file format for '{input_path}'. Please provide a CSV or Excel file.")
        return None

    try:
        records = load_creator_records(dataframe, name_column)
    except KeyError as exc:
        print(f"ERROR: {exc.args[0]}")
        return None

    config = config or NormalizerConfig()
    normalizer = NameNormalizer(StaticCreatorSource(records), config)
    try:
        result = normalizer.analyze(progress=_progress_sink(use_tqdm))
        _save_dataframe(suggestions_dataframe(result), output_path)
        if config.verbose:
            print(f"\n   Suggestions saved to '{output_path}'")

        if accept_all:
            applied = normalizer.apply_suggestions(result.suggestions)
            if updates_path is not None:
                _save_dataframe(updates_dataframe(applied), Path(updates_path))
                if config.verbose:
                    print(f"   Record updates saved to '{updates_path}'")
        return result
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return None
    finally:
        normalizer.close()


def load_creator_records(dataframe: pd.DataFrame, name_column: str | None = None) -> List[CreatorRecord]:
    """Build creator records from split name columns or a single full-name column."""

    frame = dataframe.copy()
    if name_column is not None:
        if name_column not in frame.columns:
            raise KeyError(f"Column '{name_column}' not found in input")
        parser = NameParser()
        parsed = frame[name_column].fillna("").astype(str).map(parser.parse)
        frame["first_name"] = parsed.map(lambda name: name.given_name)
        frame["last_name"] = parsed.map(
            lambda name: " ".join(part for part in (name.prefix, name.last_name) if part)
        )
    elif not {"first_name", "last_name"} <= set(frame.columns):
        raise KeyError("Input needs 'first_name' and 'last_name' columns (or pass a name column)")

    frame = frame.where(frame.notna(), None)
    return collapse_creators(frame.to_dict(orient="records"))


def suggestions_dataframe(result: AnalysisResult) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for index, suggestion in enumerate(result.suggestions, start=1):
        groups = [(suggestion.type, suggestion.primary, suggestion.variants)]
        groups.extend(
            ("given-name", cluster.recommended_full_name, cluster.variants)
            for cluster in suggestion.related_clusters
        )
        for kind, primary, variants in groups:
            for variant in variants:
                rows.append(
                    {
                        "suggestion_id": index,
                        "type": kind,
                        "primary": primary,
                        "variant": variant.name,
                        "frequency": variant.frequency,
                        "similarity": suggestion.similarity,
                        "items": "; ".join(item.title for item in variant.items),
                    }
                )
    columns = ["suggestion_id", "type", "primary", "variant", "frequency", "similarity", "items"]
    return pd.DataFrame(rows, columns=columns)


def updates_dataframe(applied: ApplyResult) -> pd.DataFrame:
    rows = [
        {
            "old_first_name": update.record.first_name,
            "old_last_name": update.record.last_name,
            "new_first_name": update.first_name,
            "new_last_name": update.last_name,
            "count": update.record.count,
        }
        for update in applied.updated_records
    ]
    columns = ["old_first_name", "old_last_name", "new_first_name", "new_last_name", "count"]
    return pd.DataFrame(rows, columns=columns)


def _progress_sink(use_tqdm: bool) -> Optional[Callable[[ProgressEvent], None]]:
    if not use_tqdm:
        return None
    bars: Dict[str, tqdm] = {}

    def report(event: ProgressEvent) -> None:
        bar = bars.get(event.stage)
        if bar is None:
            bar = tqdm(total=event.total, desc=f"   {event.stage}", unit="rec")
            bars[event.stage] = bar
        bar.update(event.processed - bar.n)
        if event.processed >= event.total:
            bar.close()

    return report


def _load_dataframe(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str)
    if suffix in {".xls", ".xlsx"}:
        return pd.read_excel(path, dtype=str)
    raise ValueError("unsupported format")


def _save_dataframe(dataframe: pd.DataFrame, output_path: Path) -> None:
    suffix = output_path.suffix.lower()
    if suffix == ".csv":
        dataframe.to_csv(output_path, index=False)
        return
    if suffix in {".xls", ".xlsx"}:
        dataframe.to_excel(output_path, index=False)
        return
    if suffix == ".json":
        dataframe.to_json(output_path, orient="records", force_ascii=False, indent=2)
        return
    raise ValueError(f"Unsupported output file format: '{suffix}'")


__all__ = [
    "load_creator_records",
    "normalize_file",
    "suggestions_dataframe",
    "updates_dataframe",
]
