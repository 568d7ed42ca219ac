"""Search filters and macro expansion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True, slots=True)
class Filter:
    """A named search prefix, optionally reachable through a ``macro:`` shortcut."""

    name: str
    search: str = ""
    macro: str = ""

    @property
    def search_prefix(self) -> str:
        return f"{self.search} " if self.search else ""


DEFAULT_FILTERS = (
    Filter("All"),
    Filter("Files", "file:"),
    Filter("Folders", "folder:"),
)

DEFAULT_USER_FILTERS = (
    Filter(
        "Audio",
        "ext:aac;ac3;aif;aifc;aiff;au;cda;dts;fla;flac;it;m1a;m2a;m3u;m4a;mid;midi;mka;"
        "mod;mp2;mp3;mpa;ogg;ra;rmi;snd;spc;umx;voc;wav;wma;xm",
        "audio",
    ),
    Filter(
        "Compressed",
        "ext:7z;ace;arj;bz2;cab;gz;gzip;jar;r00;r01;r02;r03;r04;r05;r06;r07;r08;r09;"
        "rar;tar;tgz;z;zip",
        "zip",
    ),
    Filter(
        "Document",
        "ext:c;chm;cpp;csv;cxx;doc;docm;docx;dot;dotm;dotx;h;hpp;htm;html;hxx;ini;java;"
        "lua;mht;mhtml;odt;pdf;potx;potm;ppam;ppsm;ppsx;pps;ppt;pptm;pptx;rtf;sldm;sldx;"
        "thmx;txt;vsd;wpd;wps;wri;xlam;xls;xlsb;xlsm;xlsx;xltm;xltx;xml",
        "doc",
    ),
    Filter("Executable", "ext:bat;cmd;exe;msi;msp;scr", "exe"),
    Filter(
        "Picture",
        "ext:ani;bmp;gif;ico;jpe;jpeg;jpg;pcx;png;psd;tga;tif;tiff;webp;wmf",
        "pic",
    ),
    Filter(
        "Video",
        "ext:3g2;3gp;3gp2;3gpp;amr;amv;asf;avi;bdmv;bik;d2v;divx;drc;dsa;dsm;dss;dsv;evo;"
        "f4v;flc;fli;flic;flv;hdmov;ifo;ivf;m1v;m2p;m2t;m2ts;m2v;m4b;m4p;m4v;mkv;mov;"
        "mp2v;mp4;mp4v;mpe;mpeg;mpg;mpls;mpv2;mpv4;mts;ogm;ogv;pss;pva;qt;ram;ratdvd;rm;"
        "rmm;rmvb;roq;rpm;smil;smk;swf;tp;tpr;ts;vob;vp6;webm;wm;wmp;wmv",
        "video",
    ),
)


class FilterProvider(Protocol):
    @property
    def default_filters(self) -> Sequence[Filter]: ...

    @property
    def user_filters(self) -> Sequence[Filter]: ...

    @property
    def default_user_filters(self) -> Sequence[Filter]: ...

    @property
    def last_filter(self) -> Filter | None: ...


class FilterSet:
    """In-memory filter provider holding the built-in and user-defined filters."""

    def __init__(
        self,
        user_filters: Sequence[Filter] = (),
        *,
        default_filters: Sequence[Filter] = DEFAULT_FILTERS,
        default_user_filters: Sequence[Filter] = DEFAULT_USER_FILTERS,
        last_filter: Filter | None = None,
    ) -> None:
        if not default_filters:
            raise ValueError("At least one default filter is required")
        self._default_filters = list(default_filters)
        self._user_filters = list(user_filters)
        self._default_user_filters = list(default_user_filters)
        self._last_filter = last_filter

    @property
    def default_filters(self) -> list[Filter]:
        return self._default_filters

    @property
    def user_filters(self) -> list[Filter]:
        return self._user_filters

    @property
    def default_user_filters(self) -> list[Filter]:
        return self._default_user_filters

    @property
    def last_filter(self) -> Filter | None:
        return self._last_filter

    def find(self, name: str) -> Filter | None:
        """Look up a default or user filter by case-insensitive name."""
        wanted = name.casefold()
        for candidate in [*self._default_filters, *self._user_filters]:
            if candidate.name.casefold() == wanted:
                return candidate
        return None


def expand_macros(search: str, macro_filters: Sequence[Filter]) -> str:
    """Replace every ``macro:`` occurrence with the search of its filter."""
    for macro_filter in macro_filters:
        if not macro_filter.macro:
            continue
        search = search.replace(f"{macro_filter.macro}:", f"{macro_filter.search} ")
    return search
