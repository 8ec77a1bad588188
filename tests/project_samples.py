"""Project file fixtures shared by the test modules."""
from __future__ import annotations

from pathlib import Path
from typing import Dict

from vcxcompdb.toolchains import InstallationCriteria
from vcxcompdb.errors import ToolchainResolutionError

RELEASE_X64 = "'$(Configuration)|$(Platform)'=='Release|x64'"
DEBUG_X64 = "'$(Configuration)|$(Platform)'=='Debug|x64'"

_PROJECT_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<Project DefaultTargets="Build" ToolsVersion="17.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup Label="ProjectConfigurations">
    <ProjectConfiguration Include="Release|x64">
      <Configuration>Release</Configuration>
      <Platform>x64</Platform>
    </ProjectConfiguration>
  </ItemGroup>
  <PropertyGroup Label="Globals">
    <ProjectGuid>{{6B1C1E43-9E1B-4C6F-9A39-0B3E58F6C1A2}}</ProjectGuid>
    <WindowsTargetPlatformVersion>{sdk_version}</WindowsTargetPlatformVersion>
  </PropertyGroup>
  <PropertyGroup Condition="{debug}" Label="Configuration">
    <ConfigurationType>Application</ConfigurationType>
    <CharacterSet>MultiByte</CharacterSet>
    <PlatformToolset>v142</PlatformToolset>
  </PropertyGroup>
  <PropertyGroup Condition="{condition}" Label="Configuration">
    <ConfigurationType>{configuration_type}</ConfigurationType>
    {charset_node}
    <PlatformToolset>{toolset}</PlatformToolset>
    <UseOfMfc>{use_of_mfc}</UseOfMfc>
  </PropertyGroup>
  <ItemDefinitionGroup Condition="{debug}">
    <ClCompile>
      <PreprocessorDefinitions>DEBUG_ONLY;%(PreprocessorDefinitions)</PreprocessorDefinitions>
    </ClCompile>
  </ItemDefinitionGroup>
  <ItemDefinitionGroup Condition="{condition}">
    <ClCompile>
      <PreprocessorDefinitions>{definitions}</PreprocessorDefinitions>
      <AdditionalIncludeDirectories>{includes}</AdditionalIncludeDirectories>
      <LanguageStandard>{standard}</LanguageStandard>
      <RuntimeLibrary>{runtime}</RuntimeLibrary>
    </ClCompile>
  </ItemDefinitionGroup>
  <ItemGroup>
{sources}
  </ItemGroup>
  <ItemGroup>
    <ClInclude Include="src\\a.h" />
  </ItemGroup>
</Project>
"""


def project_xml(
    *,
    condition: str = RELEASE_X64,
    sdk_version: str = "10.0",
    configuration_type: str = "Application",
    charset: str | None = "Unicode",
    toolset: str = "v143",
    use_of_mfc: str = "false",
    definitions: str = "FOO;BAR BAZ;%(PreprocessorDefinitions)",
    includes: str = "include;..\\third party\\lib;%(AdditionalIncludeDirectories)",
    standard: str = "stdcpp17",
    runtime: str = "MultiThreadedDLL",
    sources: tuple[str, ...] = ("src\\a.cpp",),
) -> str:
    charset_node = f"<CharacterSet>{charset}</CharacterSet>" if charset is not None else ""
    source_nodes = "\n".join(f'    <ClCompile Include="{source}" />' for source in sources)
    return _PROJECT_TEMPLATE.format(
        condition=condition,
        debug=DEBUG_X64,
        sdk_version=sdk_version,
        configuration_type=configuration_type,
        charset_node=charset_node,
        toolset=toolset,
        use_of_mfc=use_of_mfc,
        definitions=definitions,
        includes=includes,
        standard=standard,
        runtime=runtime,
        sources=source_nodes,
    )


def write_project(path: Path, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(project_xml(**kwargs), encoding="utf-8")
    return path


class FakeInstallationQuery:
    """Installation registry returning fixed roots per toolset."""

    def __init__(self, roots: Dict[str, Path] | None = None) -> None:
        self.roots = dict(roots or {})
        self.calls: list[InstallationCriteria] = []

    def query_installation(self, criteria: InstallationCriteria) -> str:
        self.calls.append(criteria)
        root = self.roots.get(criteria.toolset)
        if root is None:
            raise ToolchainResolutionError(f"no installation for {criteria.toolset}")
        return str(root)


def make_visual_studio(root: Path, *msvc_versions: str) -> Path:
    for version in msvc_versions or ("14.38.33130",):
        (root / "VC" / "Tools" / "MSVC" / version / "include").mkdir(parents=True, exist_ok=True)
    (root / "VC" / "Auxiliary" / "VS" / "include").mkdir(parents=True, exist_ok=True)
    return root


def make_windows_kits(program_files: Path, *sdk_versions: str) -> Path:
    include_root = program_files / "Windows Kits" / "10" / "Include"
    for version in sdk_versions or ("10.0.19041.0",):
        (include_root / version).mkdir(parents=True, exist_ok=True)
    return include_root
