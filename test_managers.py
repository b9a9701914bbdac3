#!/usr/bin/env python3
"""
Unit tests for directory scanning, playback and MIME mapping
"""

import base64
import os
import random
import shutil
import sys
import tempfile
import unittest
from collections import Counter
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import DEFAULT_ALLOWED_EXTENSIONS, WidgetConfig
from managers import (FileScanner, PlaybackManager, encode_data_url, map_mime_type,
                      shuffle_in_place)
from messages import NODE_HELPER_DATA_URL
from state import ClientSession


def make_session(randomize=False, client_id='torque_1'):
    session = ClientSession(client_id)
    session.config = WidgetConfig(randomize_images=randomize)
    return session


def touch(path, contents=b''):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(contents)


class TestMimeMapping(unittest.TestCase):
    """Test extension to MIME type mapping"""

    def test_known_extensions(self):
        expected = {
            'a.apng': 'image/apng',
            'a.avif': 'image/avif',
            'a.gif': 'image/gif',
            'a.jpg': 'image/jpeg',
            'a.jpeg': 'image/jpeg',
            'a.jfif': 'image/jpeg',
            'a.pjpeg': 'image/jpeg',
            'a.pjp': 'image/jpeg',
            'a.png': 'image/png',
            'a.svg': 'image/svg+xml',
            'a.webp': 'image/webp',
        }
        for name, mime_type in expected.items():
            self.assertEqual(map_mime_type(name), mime_type, name)

    def test_default_allow_list_is_fully_mapped(self):
        for extension in DEFAULT_ALLOWED_EXTENSIONS:
            self.assertTrue(map_mime_type(f'photo{extension}').startswith('image/'))

    def test_unknown_extension_defaults_to_jpeg(self):
        self.assertEqual(map_mime_type('notes.txt'), 'image/jpeg')
        self.assertEqual(map_mime_type('no_extension'), 'image/jpeg')

    def test_suffix_match_is_case_sensitive(self):
        self.assertEqual(map_mime_type('PHOTO.PNG'), 'image/jpeg')

    def test_encode_data_url(self):
        url = encode_data_url('/a/x.png', b'\x89PNG')
        self.assertEqual(url, 'data:image/png;base64,' + base64.b64encode(b'\x89PNG').decode('ascii'))


class TestShuffle(unittest.TestCase):
    """Test the in-place shuffle"""

    def test_shuffle_is_permutation(self):
        items = [f'/a/{i}.png' for i in range(20)]
        shuffled = shuffle_in_place(list(items), random.Random(7))
        self.assertEqual(sorted(shuffled), sorted(items))

    def test_shuffle_position_distribution_is_uniform(self):
        rng = random.Random(1234)
        trials = 6000
        positions = {item: Counter() for item in 'abc'}
        for _ in range(trials):
            shuffled = shuffle_in_place(list('abc'), rng)
            for index, item in enumerate(shuffled):
                positions[item][index] += 1
        expected = trials / 3
        for item, counts in positions.items():
            for index in range(3):
                self.assertAlmostEqual(counts[index], expected, delta=expected * 0.1,
                                       msg=f'{item} at {index}')


class TestFileScanner(unittest.TestCase):
    """Test FileScanner class"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.scanner = FileScanner(rng=random.Random(42))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def path(self, *parts):
        return os.path.join(self.temp_dir, *parts)

    def test_scan_filters_by_extension(self):
        """Directory with x.png and y.txt yields only the png"""
        touch(self.path('a', 'x.png'))
        touch(self.path('a', 'y.txt'))
        session = make_session()

        result = self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', 'x.png')])
        self.assertEqual(session.files, result)

    def test_scan_is_recursive(self):
        touch(self.path('a', 'x.png'))
        touch(self.path('a', 'nested', 'deeper', 'z.gif'))
        session = make_session()

        result = self.scanner.scan(session, [self.path('a')], DEFAULT_ALLOWED_EXTENSIONS)

        self.assertEqual(sorted(result), sorted([
            self.path('a', 'x.png'),
            self.path('a', 'nested', 'deeper', 'z.gif'),
        ]))

    def test_scan_without_randomize_is_sorted(self):
        for name in ('c.png', 'a.png', 'b.png'):
            touch(self.path('a', name))
        session = make_session()

        result = self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', n) for n in ('a.png', 'b.png', 'c.png')])

    def test_scan_randomize_keeps_same_files(self):
        names = [f'{i:02d}.png' for i in range(15)]
        for name in names:
            touch(self.path('a', name))
        session = make_session(randomize=True)

        result = self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(sorted(result), [self.path('a', n) for n in names])

    def test_scan_skips_blank_paths(self):
        touch(self.path('a', 'x.png'))
        session = make_session()

        result = self.scanner.scan(session, ['', '   ', self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', 'x.png')])

    def test_missing_directory_does_not_abort_scan(self):
        touch(self.path('a', 'x.png'))
        session = make_session()

        with self.assertLogs('torque.managers', level='ERROR'):
            result = self.scanner.scan(session, [self.path('missing'), self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', 'x.png')])

    def test_file_given_as_directory_contributes_nothing(self):
        touch(self.path('x.png'))
        session = make_session()

        result = self.scanner.scan(session, [self.path('x.png')], ['.png'])

        self.assertEqual(result, [])

    def test_empty_directory_list_empties_session(self):
        session = make_session()
        session.files = ['/old/a.png']

        result = self.scanner.scan(session, [], ['.png'])

        self.assertEqual(result, [])
        self.assertEqual(session.files, [])
        self.assertEqual(session.cursor, 0)

    def test_rescan_is_incremental(self):
        """Second build on unchanged directory yields nothing new"""
        touch(self.path('a', 'x.png'))
        touch(self.path('a', 'y.png'))
        session = make_session()

        first = self.scanner.scan(session, [self.path('a')], ['.png'])
        second = self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(len(first), 2)
        self.assertEqual(second, [])

    def test_rescan_only_adds_new_files(self):
        touch(self.path('a', 'x.png'))
        session = make_session()
        self.scanner.scan(session, [self.path('a')], ['.png'])

        touch(self.path('a', 'new.png'))
        result = self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', 'new.png')])

    def test_same_directory_twice_has_no_duplicates(self):
        touch(self.path('a', 'x.png'))
        session = make_session()

        result = self.scanner.scan(session, [self.path('a'), self.path('a')], ['.png'])

        self.assertEqual(result, [self.path('a', 'x.png')])

    def test_results_only_match_allowed_extensions(self):
        for name in ('a.png', 'b.jpg', 'c.txt', 'd.PNG', 'e.webp', 'f'):
            touch(self.path('a', name))
        session = make_session()
        allowed = ['.png', '.webp']

        result = self.scanner.scan(session, [self.path('a')], allowed)

        self.assertTrue(all(p.endswith(tuple(allowed)) for p in result))
        self.assertEqual(len(result), len(set(result)))
        self.assertEqual(len(result), 2)

    def test_shrinking_rescan_clamps_cursor(self):
        session = make_session()
        session.files = [f'/old/{i}.png' for i in range(5)]
        session.cursor = 4
        touch(self.path('a', 'x.png'))

        self.scanner.scan(session, [self.path('a')], ['.png'])

        self.assertEqual(session.cursor, 0)

    @patch('managers.os.walk')
    def test_unreadable_directory_logged(self, mock_walk):
        def walk(path, onerror=None):
            onerror(PermissionError(13, 'Permission denied', path))
            return iter(())
        mock_walk.side_effect = walk
        os.makedirs(self.path('locked'))
        session = make_session()

        with self.assertLogs('torque.managers', level='ERROR') as logs:
            result = self.scanner.scan(session, [self.path('locked')], ['.png'])

        self.assertEqual(result, [])
        self.assertIn('failed to read files', logs.output[0])

    @patch('managers.os.walk')
    def test_unreadable_subdirectory_is_skipped(self, mock_walk):
        root = self.path('photos')
        sub = os.path.join(root, 'sub')
        touch(os.path.join(root, 'x.png'))
        touch(os.path.join(sub, 'y.png'))

        def walk(path, onerror=None):
            yield path, ['sub'], ['x.png']
            onerror(PermissionError(13, 'Permission denied', sub))
        mock_walk.side_effect = walk
        session = make_session()

        with self.assertLogs('torque.managers', level='WARNING') as logs:
            result = self.scanner.scan(session, [root], ['.png'])

        self.assertEqual(result, [os.path.join(root, 'x.png')])
        self.assertTrue(any('WARNING' in line and sub in line for line in logs.output))


class TestPlaybackManager(unittest.TestCase):
    """Test PlaybackManager class"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.playback = PlaybackManager()
        self.files = []
        for index in range(3):
            path = os.path.join(self.temp_dir, f'{index}.png')
            touch(path, f'image-{index}'.encode())
            self.files.append(path)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_empty_session_emits_nothing(self):
        session = make_session()

        with self.assertLogs('torque.managers', level='WARNING') as logs:
            result = self.playback.next(session)

        self.assertIsNone(result)
        self.assertEqual(session.cursor, 0)
        self.assertIn('none is available', logs.output[0])

    def test_next_delivers_data_url(self):
        session = make_session()
        session.files = list(self.files)

        result = self.playback.next(session)

        self.assertEqual(result.name, NODE_HELPER_DATA_URL)
        self.assertEqual(result.payload['client_id'], 'torque_1')
        self.assertEqual(result.payload['file_name'], self.files[0])
        self.assertEqual(result.payload['file_content'],
                         'data:image/png;base64,' + base64.b64encode(b'image-0').decode('ascii'))
        self.assertEqual(session.cursor, 1)
        self.assertEqual(session.last_served, self.files[0])

    def test_cursor_wraps(self):
        session = make_session()
        session.files = list(self.files)

        names = [self.playback.next(session).payload['file_name'] for _ in range(4)]

        self.assertEqual(names, self.files + [self.files[0]])
        self.assertEqual(session.cursor, 1)

    def test_visit_counts_are_balanced(self):
        session = make_session()
        session.files = list(self.files)
        calls = 10

        visits = Counter(self.playback.next(session).payload['file_name'] for _ in range(calls))

        for path in self.files:
            self.assertIn(visits[path], (calls // 3, -(-calls // 3)))
        self.assertEqual(session.cursor, calls % len(self.files))

    def test_read_failure_does_not_advance(self):
        session = make_session()
        session.files = list(self.files)
        os.remove(self.files[0])

        with self.assertLogs('torque.managers', level='ERROR'):
            result = self.playback.next(session)

        self.assertIsNone(result)
        self.assertEqual(session.cursor, 0)
        self.assertIsNone(session.last_served)

    def test_out_of_range_cursor_is_clamped(self):
        session = make_session()
        session.files = list(self.files)
        session.cursor = 7

        result = self.playback.next(session)

        self.assertEqual(result.payload['file_name'], self.files[0])
        self.assertEqual(session.cursor, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
