import dataclasses
import textwrap
import unittest

import gostyle


def only(*options: str, **extra) -> gostyle.Config:
    flags = {f.name: False for f in dataclasses.fields(gostyle.Config) if f.name.startswith("enable_")}
    for option in options:
        flags[option] = True
    flags.update(extra)
    return gostyle.Config(min_confidence=0.0, **flags)


def run(src: str, config: gostyle.Config, filename: str = "foo.go"):
    return gostyle.lint(filename, config, textwrap.dedent(src).lstrip().encode("utf-8"))


class PackageCommentTests(unittest.TestCase):
    config = only("enable_package_doc_check")

    def test_missing_package_comment_with_defaults(self) -> None:
        problems = gostyle.lint("foo.go", None, b"package foo\n")
        self.assertEqual(len(problems), 1)
        p = problems[0]
        self.assertEqual(p.category, "comments")
        self.assertEqual(p.confidence, 0.2)
        self.assertEqual(p.text, "should have a package comment, unless it's in another file for this package")
        self.assertEqual(p.link, "http://golang.org/s/comments#Package_Comments")
        self.assertEqual((p.position.line, p.position.column), (1, 1))

    def test_well_formed_comment(self) -> None:
        self.assertEqual(run("""
            // Package foo does things.
            package foo
        """, self.config), [])

    def test_wrong_form(self) -> None:
        problems = run("""
            // foo does things.
            package foo
        """, self.config)
        self.assertEqual([p.text for p in problems], ['package comment should be of the form "Package foo ..."'])
        self.assertEqual(problems[0].confidence, 1)

    def test_leading_space(self) -> None:
        problems = run("""
            //  Package foo does things.
            package foo
        """, self.config)
        self.assertEqual([p.text for p in problems], ["package comment should not have leading space"])

    def test_detached_comment_does_not_count(self) -> None:
        problems = run("""
            // Package foo does things.

            package foo
        """, self.config)
        self.assertEqual([p.confidence for p in problems], [0.2])

    def test_main_package_is_free_form(self) -> None:
        self.assertEqual(run("""
            // Command tool prints things.
            package main
        """, self.config), [])

    def test_test_files_are_skipped(self) -> None:
        self.assertEqual(run("package foo\n", self.config, filename="foo_test.go"), [])


class ImportTests(unittest.TestCase):
    config = only("enable_import_checks")

    def test_dot_import(self) -> None:
        problems = run("""
            package foo

            import . "fmt"
        """, self.config)
        self.assertEqual([p.text for p in problems], ["should not use dot imports"])
        self.assertEqual(problems[0].category, "imports")

    def test_dot_import_allowed_in_tests(self) -> None:
        self.assertEqual(run("""
            package foo

            import . "fmt"
        """, self.config, filename="foo_test.go"), [])

    def test_undocumented_blank_import(self) -> None:
        problems = run("""
            package foo

            import (
                "fmt"
                _ "net/http/pprof"
                _ "expvar"
            )
        """, self.config)
        self.assertEqual(len(problems), 1)
        self.assertEqual(problems[0].position.line, 5)
        self.assertTrue(problems[0].text.startswith("a blank import should be only in a main or test package"))

    def test_documented_blank_group(self) -> None:
        self.assertEqual(run("""
            package foo

            import (
                "fmt"

                // Register debug handlers.
                _ "net/http/pprof"
                _ "expvar"
            )
        """, self.config), [])

    def test_line_comment_justifies(self) -> None:
        self.assertEqual(run("""
            package foo

            import _ "expvar" // publishes metrics
        """, self.config), [])

    def test_second_group_needs_its_own_comment(self) -> None:
        problems = run("""
            package foo

            import (
                // Register debug handlers.
                _ "net/http/pprof"

                _ "expvar"
            )
        """, self.config)
        self.assertEqual([p.position.line for p in problems], [7])

    def test_main_package_may_use_blank_imports(self) -> None:
        self.assertEqual(run("""
            package main

            import _ "expvar"
        """, self.config), [])


class ExportedDocTests(unittest.TestCase):
    config = only("enable_exported_doc_checks")

    def test_missing_func_doc(self) -> None:
        problems = run("""
            package foo

            func Exported() {}

            func unexported() {}
        """, self.config)
        self.assertEqual([p.text for p in problems],
                         ["exported function Exported should have comment or be unexported"])
        self.assertEqual(problems[0].confidence, 1)
        self.assertEqual(problems[0].category, "comments")

    def test_func_doc_form(self) -> None:
        problems = run("""
            package foo

            // does a thing.
            func Exported() {}

            // Other does another thing.
            func Other() {}
        """, self.config)
        self.assertEqual([p.text for p in problems],
                         ['comment on exported function Exported should be of the form "Exported ..."'])
        self.assertEqual(problems[0].position.line, 3)

    def test_methods_exemptions(self) -> None:
        problems = run("""
            package foo

            // T is a thing.
            type T []int

            func (t T) Len() int           { return len(t) }
            func (t T) Less(i, j int) bool { return t[i] < t[j] }
            func (t T) Swap(i, j int)      { t[i], t[j] = t[j], t[i] }
            func (t T) String() string     { return "" }
            func (t *T) Do()               {}

            type u struct{}

            func (x u) Do() {}
        """, self.config)
        self.assertEqual([p.text for p in problems],
                         ["exported method T.Do should have comment or be unexported"])

    def test_len_needs_doc_on_non_sortable(self) -> None:
        problems = run("""
            package foo

            // T is a thing.
            type T []int

            func (t T) Len() int { return len(t) }
        """, self.config)
        self.assertEqual([p.text for p in problems],
                         ["exported method T.Len should have comment or be unexported"])

    def test_type_docs(self) -> None:
        problems = run("""
            package foo

            type Missing struct{}

            // A Good is fine.
            type Good struct{}

            // Things are bad.
            type Thing struct{}
        """, self.config)
        self.assertEqual([p.text for p in problems], [
            "exported type Missing should have comment or be unexported",
            'comment on exported type Thing should be of the form "Thing ..." (with optional leading article)',
        ])

    def test_const_block_reported_once(self) -> None:
        problems = run("""
            package foo

            const (
                Alpha = 1
                Beta  = 2
            )
        """, self.config)
        self.assertEqual([p.text for p in problems],
                         ["exported const Alpha should have comment (or a comment on this block) or be unexported"])

    def test_commented_block_is_enough(self) -> None:
        self.assertEqual(run("""
            package foo

            // Levels.
            const (
                Alpha = 1
                Beta  = 2
            )
        """, self.config), [])

    def test_value_spec_forms(self) -> None:
        problems = run("""
            package foo

            var A, B = 1, 2

            // wrong start.
            var C = 3

            var (
                // D is documented.
                D = 4
                // nope.
                E = 5
            )
        """, self.config)
        self.assertEqual([p.text for p in problems], [
            "exported var B should have its own declaration",
            'comment on exported var C should be of the form "C ..."',
            'comment on exported var E should be of the form "E ..."',
        ])

    def test_test_files_are_skipped(self) -> None:
        self.assertEqual(run("""
            package foo

            func Exported() {}
        """, self.config, filename="foo_test.go"), [])


class StutterTests(unittest.TestCase):
    config = only("enable_exported_doc_checks")

    def test_stutter(self) -> None:
        problems = run("""
            package donut

            // DonutMaker makes donuts.
            func DonutMaker() {}

            // Donut is the same length as the package.
            type Donut struct{}

            // Donuts does not start a new word.
            type Donuts struct{}

            // DONUTRank stutters regardless of case.
            type DONUTRank int
        """, self.config)
        self.assertEqual([p.text for p in problems], [
            "func name will be used as donut.DonutMaker by other packages, and that stutters; "
            "consider calling this Maker",
            "type name will be used as donut.DONUTRank by other packages, and that stutters; "
            "consider calling this Rank",
        ])
        self.assertEqual({p.confidence for p in problems}, {0.8})
        self.assertEqual({p.category for p in problems}, {"naming"})

    def test_prefix_allowed(self) -> None:
        config = dataclasses.replace(self.config, allow_package_prefix_in_names=True)
        self.assertEqual(run("""
            package donut

            // DonutMaker makes donuts.
            func DonutMaker() {}
        """, config), [])


if __name__ == "__main__":
    unittest.main()
