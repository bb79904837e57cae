import argparse
import json
import sys
from pathlib import Path
from auto_insights.charts import summarize_charts
from auto_insights.narrative import NarrativeClient
from auto_insights.pipeline import InsightPipeline
from auto_insights.utils.logging_config import setup_logging, configure_third_party_logging
from auto_insights.config import get_config

def print_narrative(narrative):
    print()
    print(f"[{narrative.status}] {narrative.narrative}")
    for rec in narrative.recommendations:
        print(f"  - {rec}")
    for risk in narrative.risks:
        print(f"  ! {risk}")

def main():
    """Main entry point for the insight pipeline"""
    parser = argparse.ArgumentParser(description="Automated tabular data insights")
    parser.add_argument("--data-path", help="Path to a CSV or JSON dataset")
    parser.add_argument("--data-url", help="URL of a remote JSON dataset")
    parser.add_argument("--records-path", help="Dotted path to the record array inside a JSON document")
    parser.add_argument("--output", help="Write the analysis payload to this JSON file")
    parser.add_argument("--with-narrative", action="store_true", help="Ask the narrative generator for a write-up")
    parser.add_argument("--charts-narrative", action="store_true", help="Also summarize the suggested charts")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--log-level", default=None, help="Logging level")
    parser.add_argument("--log-file", action="store_true", help="Also write logs under the logs directory")

    args = parser.parse_args()

    if not args.data_path and not args.data_url:
        parser.error("one of --data-path or --data-url is required")

    # Load configuration
    config = get_config(args.config)

    # Setup logging
    if args.log_file:
        config.create_directories()
    setup_logging(
        log_level=args.log_level or config.logging_level,
        log_dir=str(config.paths.LOGS_DIR),
        log_to_file=args.log_file
    )
    configure_third_party_logging()

    issues = config.validate_config()
    if issues:
        print(f"Error: invalid configuration: {'; '.join(issues)}")
        sys.exit(1)

    # Validate data path exists
    if args.data_path and not Path(args.data_path).exists():
        print(f"Error: Data file not found at {args.data_path}")
        sys.exit(1)

    pipeline = InsightPipeline(config)
    result = pipeline.run(
        data_path=args.data_path,
        data_url=args.data_url,
        records_path=args.records_path,
        with_narrative=args.with_narrative
    )

    if result.get('status') == 'failed':
        errors = result.get('errors') or [result.get('error')]
        print(f"❌ Analysis failed: {'; '.join(str(e) for e in errors)}")
        sys.exit(1)

    report = result['report']
    print(report.narrative)
    for bullet in report.bullets:
        print(f"  • {bullet}")

    narrative = result.get('narrative')
    if narrative is not None:
        print_narrative(narrative)

    if args.charts_narrative:
        summary = summarize_charts(result['table'], config=config.charts)
        print_narrative(NarrativeClient(config.narrative).generate(summary, charts_only=True))

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(result['payload'], f, indent=2, ensure_ascii=False)
        print(f"Payload written to {args.output}")

if __name__ == "__main__":
    main()
