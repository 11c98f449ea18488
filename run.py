"""Entry point for the cache simulator.

Usage:
    python run.py -s 4 -E 1 -b 4 -t traces/yi.trace
    python run.py -v -s 8 -E 2 -b 4 -t traces/yi.trace
    python run.py -s 4 -E 1 -b 4 -t traces/yi.trace --sweep-assoc 1,2,4,8
"""
import argparse
import sys

from src.core.trace import TraceError
from src.data.stats_export import RESULTS_FILE, Exporter, export_chart_json, export_chart_pdf
from src.simulation import Simulation, SimulationConfig, sweep


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='csim',
        description="Replay a Valgrind memory trace against an LRU set-associative cache.",
        epilog="Examples:\n"
               "  csim -s 4 -E 1 -b 4 -t traces/yi.trace\n"
               "  csim -v -s 8 -E 2 -b 4 -t traces/yi.trace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", dest="verbose", action="store_true", help="Optional verbose flag.")
    p.add_argument("-s", type=int, default=0, help="Number of set index bits.")
    p.add_argument("-E", type=int, default=0, help="Number of lines per set.")
    p.add_argument("-b", type=int, default=0, help="Number of block offset bits.")
    p.add_argument("-t", dest="trace_file", help="Trace file.")
    p.add_argument("--results", default=RESULTS_FILE, help="Where to write 'hits misses evictions'.")
    p.add_argument("--csv", help="Also export the statistics as CSV.")
    p.add_argument("--json", help="Export hit-rate history and statistics as JSON.")
    p.add_argument("--chart", help="Export the hit-rate history as a PDF chart.")
    p.add_argument("--history-interval", type=int, default=100,
                   help="Sample the hit rate every N accesses for --json/--chart.")
    p.add_argument("--sweep-assoc", help="Comma separated associativities to compare, e.g. 1,2,4.")
    return p


def _parse_assoc_list(text: str):
    try:
        values = [int(v) for v in text.split(',') if v.strip()]
    except ValueError:
        raise ValueError(f"bad associativity list: {text!r}") from None
    if not values or any(v < 1 for v in values):
        raise ValueError(f"bad associativity list: {text!r}")
    return values


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    prog = parser.prog

    # Make sure that all required command line args were specified
    if args.s == 0 or args.E == 0 or args.b == 0 or not args.trace_file:
        print(f"{prog}: Missing required command line argument")
        parser.print_usage()
        return 1

    wants_history = bool(args.json or args.chart)
    config = SimulationConfig(
        s=args.s, E=args.E, b=args.b,
        trace_file=args.trace_file,
        verbose=args.verbose,
        results_path=args.results,
        history_interval=max(1, args.history_interval) if wants_history else 0,
    )

    try:
        if args.sweep_assoc:
            geometries = [(args.s, e, args.b) for e in _parse_assoc_list(args.sweep_assoc)]
            for row in sweep(args.trace_file, geometries):
                print(f"s={row['s']} E={row['E']} b={row['b']} "
                      f"hits:{row['hits']} misses:{row['misses']} evictions:{row['evictions']} "
                      f"hit_rate:{row['hit_rate']:.4f}")
            return 0
        stats = Simulation(config).run()
    except ValueError as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return 1
    except TraceError as e:
        print(str(e), file=sys.stderr)
        return 1
    except MemoryError:
        print("Error: Cannot allocate cache", file=sys.stderr)
        return 1

    # Output the hit and miss statistics for the autograder
    print(stats.summary())
    if config.results_path:
        Exporter.write_results(stats, config.results_path)
    if args.csv:
        Exporter.export_stats_csv(args.csv, stats)
    if args.json:
        export_chart_json(stats.hit_rate_history, stats.as_dict(), args.json)
    if args.chart:
        export_chart_pdf(stats.hit_rate_history, args.chart, interval=config.history_interval,
                         title=f"s={args.s} E={args.E} b={args.b}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
