"""build_features.py

Run extract() over every row of a URL CSV and save a dataset with the
50 runtime features and a numeric label, ready for training the primary
scorer offline.

Input columns: `url`, optional `html`, and `label` (0 = phishing,
1 = legitimate) or `status` ("phishing" / "legitimate").

Run: python -m guardnet.build_features --in urls.csv --out features.csv
"""

import argparse
import logging

import pandas as pd

from .extract_features import FEATURE_NAMES, extract, extract_url_only, URL_FEATURE_NAMES

logger = logging.getLogger("build_features")

STATUS_LABELS = {'phishing': 0, 'legitimate': 1}


def row_label(row) -> int:
    label = row.get('label')
    if label is not None and not pd.isna(label):
        return int(label)
    status = str(row.get('status') or '').strip().lower()
    if status not in STATUS_LABELS:
        raise ValueError(f"unknown status {status!r}")
    return STATUS_LABELS[status]


def build_features(df: pd.DataFrame, url_only: bool = False) -> pd.DataFrame:
    """Feature rows for every usable URL in `df`; rows without a URL are skipped."""
    names = URL_FEATURE_NAMES if url_only else FEATURE_NAMES
    rows = []
    for i, row in df.iterrows():
        url = row.get('url')
        if not isinstance(url, str) or not url.strip():
            continue
        try:
            label = row_label(row)
        except ValueError:
            logger.warning("Skipping row %s: no usable label", i)
            continue
        if url_only:
            vector = extract_url_only(url.strip())
        else:
            html = row.get('html')
            vector = extract(url.strip(), html if isinstance(html, str) else '')
        feats = dict(zip(names, vector))
        feats['label'] = label
        rows.append(feats)
        if len(rows) % 200 == 0:
            logger.info("processed %d", len(rows))

    return pd.DataFrame(rows, columns=list(names) + ['label'])


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--in', dest='input', required=True, help='CSV with url and label/status columns')
    parser.add_argument('--out', required=True, help='Output CSV')
    parser.add_argument('--url-only', action='store_true', help='Extract the 22 URL-only features (random forest)')
    args = parser.parse_args()

    print('Loading', args.input)
    out_df = build_features(pd.read_csv(args.input), url_only=args.url_only)
    if out_df.empty:
        raise SystemExit('No features extracted')

    print('Saving', args.out, 'shape', out_df.shape)
    out_df.to_csv(args.out, index=False)
    print('done')


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
