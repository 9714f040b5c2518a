#!/usr/bin/env python3
"""
Test Suite for image slide packing

Tests:
1. No images, no image slides
2. Largest images first, four per slide, titled by position
3. Equal areas keep extraction order
4. Packed slides are image slides carrying only image content
5. One, four, five and eight images split at the four-per-slide boundary

Usage:
    python test_image_packer.py
"""

import sys
sys.path.insert(0, '.')

from src.core.image_packer import (
    FIRST_SLIDE_TITLE,
    OVERFLOW_SLIDE_TITLE,
    pack_image_slides,
)
from src.models.slides import ImageGalleryContent, ImagePayload


def _image(name, width, height):
    return ImagePayload(url=f"/api/images/request-test/{name}", width=width, height=height)


def test_empty_input():
    """Test 1: Empty input gives no slides."""
    print("\n[TEST 1] Empty input")
    print("-" * 50)

    assert pack_image_slides([]) == []
    print("  ✓ No slides for no images")


def test_sorted_and_chunked():
    """Test 2: Nine images become 4 + 4 + 1, largest first."""
    print("\n[TEST 2] Sort and chunk")
    print("-" * 50)

    sizes = [(10, 10), (100, 50), (30, 30), (200, 200), (5, 5), (60, 60), (80, 10), (40, 40), (120, 90)]
    images = [_image(f"image_{i + 1}.png", w, h) for i, (w, h) in enumerate(sizes)]

    slides = pack_image_slides(images)

    assert [len(s.content.images) for s in slides] == [4, 4, 1]
    assert slides[0].title == FIRST_SLIDE_TITLE == "Visuals from Source Document"
    assert slides[1].title == OVERFLOW_SLIDE_TITLE == "Additional Visuals"
    assert slides[2].title == OVERFLOW_SLIDE_TITLE
    print("  ✓ 3 slides: 4, 4, 1 images with expected titles")

    areas = [image.area for slide in slides for image in slide.content.images]
    assert areas == sorted(areas, reverse=True), areas
    assert slides[0].content.images[0].width == 200
    assert slides[-1].content.images[0].width == 5
    print("  ✓ Images ordered by area, descending")

    assert len(images) == 9 and images[0].width == 10
    print("  ✓ Input sequence left untouched")


def test_ties_keep_extraction_order():
    """Test 3: Stable ordering for equal areas."""
    print("\n[TEST 3] Stable ties")
    print("-" * 50)

    images = [
        _image("image_1.png", 20, 10),
        _image("image_2.png", 10, 20),
        _image("image_3.png", 50, 50),
        _image("image_4.png", 200, 1),
    ]
    slides = pack_image_slides(images)
    names = [image.url.rsplit("/", 1)[1] for image in slides[0].content.images]

    assert names == ["image_3.png", "image_1.png", "image_2.png", "image_4.png"], names
    print("  ✓ Equal-area images keep their extraction order")


def test_slide_shape():
    """Test 4: Packed slides carry image content only."""
    print("\n[TEST 4] Slide shape")
    print("-" * 50)

    slides = pack_image_slides([_image("image_1.jpg", 640, 480)], max_per_slide=2)
    slide = slides[0]

    assert slide.is_image_slide is True
    assert isinstance(slide.content, ImageGalleryContent)
    assert slide.image_query is None
    dumped = slide.model_dump(by_alias=True)
    assert dumped["isImageSlide"] is True
    assert dumped["content"]["kind"] == "images"
    print("  ✓ isImageSlide set, content kind 'images'")

    try:
        pack_image_slides([], max_per_slide=0)
        raise AssertionError("max_per_slide=0 should be rejected")
    except ValueError:
        pass
    print("  ✓ max_per_slide below 1 rejected")


def test_slide_boundaries():
    """Test 5: Counts on either side of a full slide."""
    print("\n[TEST 5] Slide boundaries")
    print("-" * 50)

    cases = [
        (1, [1]),
        (4, [4]),
        (5, [4, 1]),
        (8, [4, 4]),
    ]
    for count, expected in cases:
        # extraction order is smallest first, so sorting must reverse it
        images = [_image(f"image_{i + 1}.png", 10 * (i + 1), 10) for i in range(count)]
        slides = pack_image_slides(images)

        assert [len(s.content.images) for s in slides] == expected, (count, slides)
        assert slides[0].title == FIRST_SLIDE_TITLE
        assert all(s.title == OVERFLOW_SLIDE_TITLE for s in slides[1:])

        widths = [image.width for slide in slides for image in slide.content.images]
        assert widths == [10 * n for n in range(count, 0, -1)], (count, widths)
        print(f"  ✓ {count} image(s) -> {expected}, largest first")

    slides = pack_image_slides([_image(f"image_{i + 1}.png", 10 * (i + 1), 10) for i in range(8)])
    assert sorted(image.width for image in slides[0].content.images) == [50, 60, 70, 80]
    print("  ✓ With 8 images the first slide holds the four largest")


TESTS = [
    test_empty_input,
    test_sorted_and_chunked,
    test_ties_keep_extraction_order,
    test_slide_shape,
    test_slide_boundaries,
]


def main():
    print("=" * 60)
    print("IMAGE PACKER TESTS")
    print("=" * 60)

    results = []
    for test in TESTS:
        try:
            test()
            results.append(True)
        except Exception as e:
            print(f"  ✗ {test.__name__} FAILED: {e}")
            results.append(False)

    print("\n" + "=" * 60)
    print(f"RESULTS: {sum(results)}/{len(results)} tests passed")
    print("=" * 60)
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
