"""
Generate synthetic benchmark input images in test-images/.
Writes one noisy JPEG per size so strategies can be compared across input sizes.
Run: python scripts/generate_test_images.py [--sizes 1920x1080 6000x4000]
"""
import argparse
import os
import sys

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, BASE_DIR)

from utils import create_synthetic_test_image, write_image  # noqa: E402

DEFAULT_SIZES = ['1920x1080', '4000x3000', '6000x4000']


def parse_size(text):
    w, _, h = text.lower().partition('x')
    return int(w), int(h)


def main():
    p = argparse.ArgumentParser()
    p.add_argument('--sizes', nargs='+', default=DEFAULT_SIZES)
    p.add_argument('--outdir', default=os.path.join(BASE_DIR, 'test-images'))
    args = p.parse_args()
    for size in args.sizes:
        w, h = parse_size(size)
        out = os.path.join(args.outdir, f'synthetic-{w}x{h}.jpg')
        write_image(out, create_synthetic_test_image(w, h, complexity='complex'))
        print('WROTE', out)
    # the default input of benchmark.py
    largest = max((parse_size(s) for s in args.sizes), key=lambda wh: wh[0] * wh[1])
    out = os.path.join(args.outdir, 'bigger-image.jpg')
    write_image(out, create_synthetic_test_image(*largest, complexity='complex'))
    print('WROTE', out)


if __name__ == '__main__':
    main()
