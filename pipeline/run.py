"""Main pipeline orchestrator for FocosBR."""

import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from pipeline.enrich import FallbackClassifier, RegionIndex, SpatialEnricher
from pipeline.exceptions import IncompleteRunError, NoInputRecordsError, PipelineError
from pipeline.export import save_processing_summary, save_results, save_statistics
from pipeline.ingest import ReferenceCache, load_reference_collections, read_detection_files
from pipeline.models import Bounds
from pipeline.process import BatchProcessor, BatchResult, RunStatistics
from pipeline.process.batch import DEFAULT_BATCH_SIZE
from pipeline.synthetic import generate_example_detections
from pipeline.utils import load_config, setup_logger

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)


def _banner(title: str) -> None:
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)


def run_pipeline(
    config: dict,
    raw_dir: Optional[Path] = None,
    references_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    batch_size: Optional[int] = None,
    workers: Optional[int] = None,
    synthetic_fallback: bool = False,
    cache: Optional[ReferenceCache] = None
) -> BatchResult:
    """
    Run ingestion, enrichment and export once.

    Explicit arguments override the matching config values.

    Args:
        config: Parsed configs/active.yml
        raw_dir: Directory of detection CSVs
        references_dir: Directory of reference GeoJSON files
        output_dir: Directory for the JSON artifacts
        batch_size: Records per batch
        workers: Parallel batch workers
        synthetic_fallback: Use generated example detections when no input exists
        cache: Reference cache reused across runs

    Returns:
        BatchResult of the run

    Raises:
        NoInputRecordsError: No input and no synthetic fallback
        IncompleteRunError: Ingestion failed part way; the records enriched
            before the failure are still written, with status 'partial'
        OutputWriteError: Artifacts could not be written
    """
    paths = config.get('paths', {})
    processing = config.get('processing', {})

    bounds = Bounds.from_config(config.get('bounds'))
    raw_dir = Path(raw_dir or paths.get('raw_dir', 'data/raw'))
    references_dir = Path(references_dir or paths.get('references_dir', 'data/references'))
    output_dir = Path(output_dir or paths.get('processed_dir', 'data/processed'))
    batch_size = batch_size or processing.get('batch_size', DEFAULT_BATCH_SIZE)
    workers = workers or processing.get('workers', 1)

    # === STEP 1: REFERENCE GEOMETRIES ===
    _banner("STEP 1: Reference Geometries")

    collections = load_reference_collections(references_dir, config.get('references'), cache)
    index = RegionIndex.build(collections)
    references = {category: index.count(category) for category in index.categories()}

    # === STEP 2: ENRICHMENT ===
    _banner("STEP 2: Detection Enrichment")

    processor = BatchProcessor(
        SpatialEnricher(index, FallbackClassifier()),
        batch_size=batch_size,
        workers=workers
    )

    try:
        result = processor.run(read_detection_files(raw_dir, bounds))
    except IncompleteRunError as e:
        logger.error(f"Run incomplete: {e}")
        partial = e.result
        save_results(output_dir, partial.records, partial.statistics, bounds, references,
                     status='partial')
        raise
    except NoInputRecordsError:
        logger.error(f"No valid detections found in {raw_dir}")
        save_statistics(output_dir, RunStatistics())
        save_processing_summary(output_dir, RunStatistics(), 'failed', bounds, references)

        if not synthetic_fallback:
            raise

        synthetic = config.get('synthetic', {})
        logger.warning("Falling back to synthetic example detections")
        result = processor.run(generate_example_detections(
            n=synthetic.get('count', 5000),
            seed=synthetic.get('seed', 42),
            bounds=bounds
        ))

    # === STEP 3: SAVE OUTPUTS ===
    _banner("STEP 3: Saving Outputs")

    save_results(output_dir, result.records, result.statistics, bounds, references)

    statistics = result.statistics
    for category, counts in statistics.classification.items():
        logger.info(f"   {category}: {counts['classified']} by polygon, "
                    f"{counts['fallback']} by fallback, {counts['unclassified']} unclassified")

    return result


@click.command()
@click.option('--config', default='configs/active.yml', help='Path to configuration file')
@click.option('--raw-dir', default=None, type=click.Path(path_type=Path),
              help='Directory of raw detection CSVs')
@click.option('--references-dir', default=None, type=click.Path(path_type=Path),
              help='Directory of reference GeoJSON files')
@click.option('--output-dir', default=None, type=click.Path(path_type=Path),
              help='Directory for processed JSON outputs')
@click.option('--batch-size', default=None, type=click.IntRange(min=1), help='Records per batch')
@click.option('--workers', default=None, type=click.IntRange(min=1), help='Parallel batch workers')
@click.option('--synthetic-fallback', is_flag=True,
              help='Use synthetic example detections when no input is found')
def main(config, raw_dir, references_dir, output_dir, batch_size, workers, synthetic_fallback):
    """Enrich heat spot detections with municipality, biome and protected-area labels."""

    _banner("FocosBR Pipeline Starting")

    active_config = load_config(config)

    try:
        result = run_pipeline(
            active_config,
            raw_dir=raw_dir,
            references_dir=references_dir,
            output_dir=output_dir,
            batch_size=batch_size,
            workers=workers,
            synthetic_fallback=synthetic_fallback
        )
    except PipelineError as e:
        logger.error(f"Pipeline failed: {e}")
        sys.exit(1)

    _banner("Pipeline Complete!")
    logger.info(f"Total detections: {result.statistics.total}")
    logger.info(f"Unique municipalities: {len(result.statistics.by_municipality)}")
    logger.info(f"Unique biomes: {len(result.statistics.by_biome)}")


if __name__ == '__main__':
    main()
