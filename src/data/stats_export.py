"""Statistics and exporter.
"""
import csv
import json
from typing import List, Dict, Optional

RESULTS_FILE = '.csim_results'


def export_chart_json(hit_rate_history: List[float], stats: Dict[str, float], fpath: str) -> str:
    """Export hit-rate history and stats to a JSON file. Returns saved path.
    """
    data = {
        'hit_rate_history': list(hit_rate_history),
        'stats': stats
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def history_access_counts(samples: int, interval: int) -> List[int]:
    """Access count at which each hit-rate sample was taken."""
    return [(i + 1) * interval for i in range(samples)]


def export_chart_pdf(hit_rate_history: List[float], fpath: str, interval: int = 1,
                     title: Optional[str] = None) -> str:
    """Render the hit-rate history to a PDF using matplotlib and save it.
    Sample i was taken after (i + 1) * interval accesses; the x axis shows
    that access count. Returns the saved file path.
    """
    # Use matplotlib
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    data = list(hit_rate_history) or [0.0]
    accesses = history_access_counts(len(data), interval)
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.step(accesses, data, where='post', color='#FFA500', linewidth=2)
    ax.fill_between(accesses, data, step='post', color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlim(0, accesses[-1])
    ax.set_xlabel('Accesses')
    ax.set_ylabel('Hit rate')
    if title:
        ax.set_title(title)
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, format='pdf', dpi=150)
    plt.close(fig)
    return fpath


class Statistics:
    """Hit/miss/eviction counters for one simulation run.

    When `history_interval` is set, the running hit rate is sampled every
    `history_interval` accesses into `hit_rate_history`.
    """

    def __init__(self, history_interval: int = 0):
        self.history_interval = history_interval
        self.reset()

    def reset(self):
        # counters start from zero
        self.accesses = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.hit_rate_history: List[float] = []

    def record_access(self, hit: bool, evicted: bool = False):
        # simple counter update: call this for every cache access
        self.accesses += 1
        if hit:
            self.hits += 1
        else:
            self.misses += 1
            if evicted:
                self.evictions += 1
        if self.history_interval and self.accesses % self.history_interval == 0:
            self.hit_rate_history.append(self.hit_rate)

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def summary(self) -> str:
        return f"hits:{self.hits} misses:{self.misses} evictions:{self.evictions}"

    def as_dict(self) -> Dict[str, float]:
        return {
            'accesses': self.accesses,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
            'hit_rate': self.hit_rate,
            'miss_rate': self.miss_rate,
        }


class Exporter:
    @staticmethod
    def write_results(stats: Statistics, path: str = RESULTS_FILE):
        """Write "hits misses evictions" on one line for the grading tools."""
        with open(path, 'w', encoding='utf-8') as f:
            f.write(f"{stats.hits} {stats.misses} {stats.evictions}\n")

    @staticmethod
    def export_stats_csv(path: str, stats: Statistics):
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['accesses', 'hits', 'misses', 'evictions', 'hit_rate', 'miss_rate'])
            writer.writerow([
                stats.accesses, stats.hits, stats.misses, stats.evictions,
                stats.hit_rate, stats.miss_rate
            ])
