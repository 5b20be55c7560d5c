"""Tests for application layout classification."""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path, PurePosixPath
from typing import Dict

from static_buildpack.config import Settings
from static_buildpack.errors import ClassificationError, ConfigValidationError
from static_buildpack.layouts import (
    ALL_RULES,
    BuiltOutputRule,
    LayoutKind,
    PublicDirRule,
    RootIndexRule,
    classify,
)
from static_buildpack.source import SourceTree


def write_tree(root: Path, files: Dict[str, str]) -> None:
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


def package_json(build_script: str = 'react-scripts build', **extra) -> str:
    data = {'name': 'site', 'scripts': {'build': build_script}}
    data.update(extra)
    return json.dumps(data)


class LayoutTestCase(unittest.TestCase):

    def setUp(self) -> None:
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)

    def tearDown(self) -> None:
        shutil.rmtree(self.temp_dir)

    def classify(self, files: Dict[str, str], environ: Dict[str, str] = None):
        write_tree(self.root, files)
        return classify(SourceTree(self.root), Settings(environ or {}))


class TestClassify(LayoutTestCase):
    """Precedence and totality of classification."""

    def test_root_index(self) -> None:
        layout = self.classify({'index.html': '<h1>hi</h1>'})
        self.assertEqual(layout.kind, LayoutKind.ROOT_INDEX)
        self.assertEqual(layout.document_root, PurePosixPath('.'))
        self.assertEqual(layout.resolve_document_root(SourceTree(self.root)), self.root.resolve())
        self.assertFalse(layout.requires_build)

    def test_public_dir(self) -> None:
        layout = self.classify({'public/index.html': 'satic site served from public dir'})
        self.assertEqual(layout.kind, LayoutKind.PUBLIC_DIR)
        self.assertEqual(layout.document_root, PurePosixPath('public'))

    def test_public_dir_is_not_root_index(self) -> None:
        layout = self.classify({'public/index.html': 'x', 'README.md': 'docs'})
        self.assertNotEqual(layout.kind, LayoutKind.ROOT_INDEX)

    def test_public_dir_wins_over_root_index(self) -> None:
        layout = self.classify({'index.html': 'root', 'public/index.html': 'public'})
        self.assertEqual(layout.kind, LayoutKind.PUBLIC_DIR)

    def test_built_output_wins_over_root_index(self) -> None:
        layout = self.classify({'package.json': package_json(), 'index.html': 'stale'})
        self.assertEqual(layout.kind, LayoutKind.BUILT_OUTPUT)
        self.assertTrue(layout.requires_build)

    def test_built_output_wins_over_public_dir(self) -> None:
        layout = self.classify({
            'package.json': package_json(dependencies={'react-scripts': '5.0.1'}),
            'public/index.html': '<div id="root"></div> %PUBLIC%',
            'src/index.js': 'render()',
        })
        self.assertEqual(layout.kind, LayoutKind.BUILT_OUTPUT)
        self.assertEqual(layout.document_root, PurePosixPath('build'))
        self.assertEqual(layout.framework, 'create-react-app')
        self.assertEqual(layout.marker, 'package.json')

    def test_no_supported_layout(self) -> None:
        with self.assertRaises(ClassificationError) as ctx:
            self.classify({'README.md': 'nothing to serve'})
        self.assertEqual(ctx.exception.reason, 'no supported layout detected')

    def test_empty_tree(self) -> None:
        with self.assertRaises(ClassificationError):
            self.classify({})

    def test_misplaced_html_is_reported(self) -> None:
        with self.assertRaises(ClassificationError) as ctx:
            self.classify({'site/home.html': '<h1>home</h1>'})
        self.assertIn('site/home.html', ctx.exception.suggestions[0])

    def test_index_directory_is_not_a_file(self) -> None:
        (self.root / 'index.html').mkdir()
        with self.assertRaises(ClassificationError):
            classify(SourceTree(self.root), Settings())

    def test_classification_does_not_modify_tree(self) -> None:
        write_tree(self.root, {'public/index.html': 'x', 'package.json': '{"name": "x"}'})
        before = sorted(str(p) for p in self.root.rglob('*'))
        classify(SourceTree(self.root), Settings())
        after = sorted(str(p) for p in self.root.rglob('*'))
        self.assertEqual(before, after)

    def test_rule_order(self) -> None:
        self.assertEqual(
            [type(rule) for rule in ALL_RULES],
            [BuiltOutputRule, PublicDirRule, RootIndexRule]
        )

    def test_custom_rules(self) -> None:
        write_tree(self.root, {'index.html': 'x', 'public/index.html': 'y'})
        layout = classify(SourceTree(self.root), Settings(), rules=[RootIndexRule()])
        self.assertEqual(layout.kind, LayoutKind.ROOT_INDEX)


class TestBuiltOutputRule(LayoutTestCase):
    """Front-end project detection."""

    def test_manifest_without_build_script_falls_through(self) -> None:
        layout = self.classify({
            'package.json': json.dumps({'name': 'x', 'scripts': {'start': 'node server.js'}}),
            'index.html': 'x',
        })
        self.assertEqual(layout.kind, LayoutKind.ROOT_INDEX)

    def test_malformed_manifest_falls_through(self) -> None:
        layout = self.classify({'package.json': '{not json', 'public/index.html': 'x'})
        self.assertEqual(layout.kind, LayoutKind.PUBLIC_DIR)

    def test_manifest_that_is_not_an_object_falls_through(self) -> None:
        layout = self.classify({'package.json': '["build"]', 'index.html': 'x'})
        self.assertEqual(layout.kind, LayoutKind.ROOT_INDEX)

    def test_framework_output_dirs(self) -> None:
        cases = [
            ({'vite': '^5.0.0', 'react': '^18'}, 'vite', 'dist'),
            ({'@vue/cli-service': '5'}, 'vue-cli', 'dist'),
            ({'next': '14'}, 'nextjs', 'out'),
            ({'nuxt': '3'}, 'nuxtjs', '.output/public'),
            ({'gatsby': '5'}, 'gatsby', 'public'),
            ({'@sveltejs/kit': '2', 'vite': '5'}, 'sveltekit', 'build'),
            ({'left-pad': '1'}, 'nodejs', 'build'),
        ]
        rule = BuiltOutputRule()
        for deps, framework, output_dir in cases:
            with self.subTest(deps=deps):
                (self.root / 'package.json').write_text(package_json(devDependencies=deps))
                layout = rule.detect(SourceTree(self.root), Settings())
                self.assertEqual(layout.framework, framework)
                self.assertEqual(layout.document_root, PurePosixPath(output_dir))

    def test_output_dir_override(self) -> None:
        layout = self.classify(
            {'package.json': package_json(dependencies={'vite': '5'})},
            {'BP_STATIC_OUTPUT_DIR': 'web/out'}
        )
        self.assertEqual(layout.document_root, PurePosixPath('web/out'))

    def test_output_dir_override_outside_app(self) -> None:
        for value in ('../elsewhere', '/srv/www', '.'):
            with self.subTest(value=value):
                with self.assertRaises(ConfigValidationError):
                    self.classify({'package.json': package_json()}, {'BP_STATIC_OUTPUT_DIR': value})

    def test_build_output_not_required_at_detect_time(self) -> None:
        layout = self.classify({'package.json': package_json()})
        self.assertFalse((self.root / 'build').exists())
        self.assertEqual(layout.document_root, PurePosixPath('build'))


class TestSourceTree(LayoutTestCase):
    """Read-only tree view."""

    def test_symlink_escaping_tree_is_ignored(self) -> None:
        outside = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, outside)
        Path(outside, 'index.html').write_text('outside')
        os.symlink(Path(outside, 'index.html'), self.root / 'index.html')

        tree = SourceTree(self.root)
        self.assertFalse(tree.is_file('index.html'))
        self.assertIsNone(tree.read_text('index.html'))

    def test_symlink_inside_tree_is_followed(self) -> None:
        write_tree(self.root, {'site/index.html': 'x'})
        os.symlink(self.root / 'site', self.root / 'public')
        self.assertTrue(SourceTree(self.root).is_file('public/index.html'))

    def test_walk_skips_vendored_dirs_and_depth(self) -> None:
        write_tree(self.root, {
            'index.html': 'x',
            'node_modules/pkg/index.html': 'x',
            'a/b/c/deep.html': 'x',
            'a/b/page.html': 'x',
        })
        files = [str(path) for path in SourceTree(self.root).walk(max_depth=3)]
        self.assertEqual(files, ['index.html', 'a/b/page.html'])

    def test_read_json(self) -> None:
        write_tree(self.root, {'package.json': '{"name": "x"}', 'bad.json': '{'})
        tree = SourceTree(self.root)
        self.assertEqual(tree.read_json('package.json'), {'name': 'x'})
        self.assertIsNone(tree.read_json('bad.json'))
        self.assertIsNone(tree.read_json('missing.json'))


if __name__ == '__main__':
    unittest.main()
