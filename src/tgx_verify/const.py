ERRORS = {
  "E_LAYOUT_MISSING": "Container file missing",
  "E_HEADER_TRUNCATED": "File shorter than the container header",
  "E_MAGIC": "Header magic is not 3GX$0001",
  "E_SECTION_PAIR": "Section length and offset must be both zero or both non-zero",
  "E_SECTION_BOUNDS": "Section lies outside the file or overlaps the header",
  "E_SECTION_ORDER": "Sections are out of order, overlap or leave a gap",
  "E_STRING_TERMINATOR": "Info string is not null-terminated",
  "E_CODE_ALIGNMENT": "Code offset is not 8-byte aligned",
  "E_CODE_BOUNDS": "Code payload does not end at end of file",
  "E_PADDING": "Code padding must be 1 to 8 zero bytes",
}
