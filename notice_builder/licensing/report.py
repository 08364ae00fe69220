"""ReportComposer — render the merged licensing notice."""

from __future__ import annotations

from pathlib import Path

from notice_builder.licensing.catalog import LicenseCatalog
from notice_builder.licensing.collector import reference_basename
from notice_builder.licensing.third_party import ThirdPartyCatalog
from notice_builder.models import Project
from notice_builder.transitive.models import DependencyIndex


def license_package_location(output_dir: Path, component_name: str, reference: str) -> Path:
    """Where the license *reference* of *component_name* lives in the package.

    Files are named ``<component>-<basename>`` under the output directory.
    """
    return Path(output_dir) / f"{component_name}-{reference_basename(reference)}"


def _puts(out: list[str], text: str = "") -> None:
    out.append(text if text.endswith("\n") else f"{text}\n")


class ReportComposer:
    """Renders the project, component, transitive and third-party sections.

    Output is fully determined by its inputs: units and origins are sorted,
    dependency managers keep their first-seen order and dependents are sorted.
    """

    def __init__(
        self,
        project: Project,
        output_dir: Path,
        license_catalog: LicenseCatalog,
        dependencies: DependencyIndex,
        third_party: ThirdPartyCatalog,
    ) -> None:
        self.project = project
        self.output_dir = Path(output_dir)
        self.license_catalog = license_catalog
        self.dependencies = dependencies
        self.third_party = third_party

    def render(self) -> str:
        project = self.project
        out: list[str] = []
        _puts(out, f'{project.name} {project.version} license: "{project.license}"')
        _puts(out)
        _puts(out, self.project_license_content())
        _puts(out)
        _puts(out, self.components_summary())
        _puts(out)
        _puts(out, self.dependencies_summary())
        _puts(out)
        _puts(out, self.third_party_summary())
        return "".join(out)

    def write(self) -> Path:
        path = self.project.license_file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        return path

    def project_license_content(self) -> str:
        if self.project.license_file is None:
            return ""
        path = Path(self.project.project_root) / self.project.license_file
        return path.read_text(encoding="utf-8")

    def components_summary(self) -> str:
        """One paragraph per bundled unit, e.g.

        This product bundles python 2.7.9,
        which is available under a "Python" License.
        For details, see:
        /opt/app/LICENSES/python-LICENSE
        """
        out = "\n\n"
        entries = self.license_catalog.entries()
        for name in sorted(entries):
            entry = entries[name]
            out += f"This product bundles {name} {entry.version},\n"
            out += f'which is available under a "{entry.license_id}" License.\n'
            if entry.license_files:
                out += "For details, see:\n"
                for license_file in entry.license_files:
                    out += f"{license_package_location(self.output_dir, name, license_file)}\n"
            out += "\n"
        return out

    def dependencies_summary(self) -> str:
        out = "\n\n"
        for manager_name, dependencies in self.dependencies.nested().items():
            for dependency_name, versions in dependencies.items():
                for version, record in versions.items():
                    units = ", ".join(f"'{unit}'" for unit in sorted(record.dependent_units))
                    files = [str(self.output_dir / f) for f in record.license_files]
                    out += f"This product includes {dependency_name} {version}\n"
                    out += f"which is a '{manager_name}' dependency of {units},\n"
                    out += f"and which is available under a '{record.license_id or ''}' License.\n"
                    out += "For details, see:\n"
                    out += "\n".join(files)
                    out += "\n\n"
        return out

    def third_party_summary(self) -> str:
        out = "\n\n"
        entries = self.third_party.entries()
        for origin in sorted(entries):
            out += f"This product bundles the third-party transitive dependency {origin},\n"
            out += f'which is available under a "{entries[origin].license_id}" License.\n'
            out += "\n"
        return out
