"""Textual CSS for Kapul Reader."""

APP_CSS = """
/* ── Global ────────────────────────────────── */
Screen {
    background: $surface;
}

/* ── Library Screen ────────────────────────── */
#library-header {
    dock: top;
    height: 3;
    padding: 1 2;
    background: $primary;
    color: $text;
    text-style: bold;
}

#stats-bar {
    dock: top;
    height: 1;
    padding: 0 2;
    background: $surface-darken-1;
    color: $text-muted;
}

#book-table {
    height: 1fr;
}

/* ── Reader Screen ─────────────────────────── */
#reader-header {
    dock: top;
    height: 1;
    background: $primary;
    color: $text;
    padding: 0 2;
    text-style: bold;
}

#reader-body {
    height: 1fr;
}

#toc-sidebar {
    width: 30;
    dock: left;
    display: none;
    background: $surface-darken-1;
    border-right: solid $primary;
}

#toc-sidebar.visible {
    display: block;
}

#toc-title {
    padding: 1 1;
    text-style: bold;
    background: $primary-darken-1;
    text-align: center;
    height: 3;
}

#toc-list {
    height: 1fr;
}

.toc-item {
    padding: 0 1;
    height: 1;
}

#page-list {
    height: 1fr;
    padding: 1 4;
}

#answer-panel {
    width: 45%;
    dock: right;
    display: none;
    background: $surface-darken-1;
    border-left: solid $primary;
    padding: 1 2;
}

#answer-panel.visible {
    display: block;
}

#answer-title {
    text-style: bold;
    background: $primary-darken-1;
    color: $text;
    text-align: center;
    height: 3;
    padding: 1 1;
}

#answer-text {
    height: 1fr;
}

/* ── Paragraphs ────────────────────────────── */
.paragraph {
    padding: 0 1;
    margin: 0 0 1 0;
}

.paragraph.--highlight {
    background: $primary-darken-2;
}

.notice {
    color: $warning;
    text-style: italic;
}

/* ── Highlights & Quiz ─────────────────────── */
#highlights-header, #quiz-header {
    dock: top;
    height: 1;
    background: $primary;
    color: $text;
    padding: 0 2;
    text-style: bold;
}

#highlight-table, #flashcard-table {
    height: 1fr;
}

#flashcard-title {
    height: 1;
    padding: 0 2;
    text-style: bold;
    background: $primary-darken-1;
}

#quiz-question {
    padding: 2 4;
    text-style: bold;
}

#quiz-answer {
    padding: 0 4;
    color: $secondary;
    text-style: italic;
}

#quiz-score {
    padding: 1 4;
    color: $success;
}

/* ── Loading indicator ─────────────────────── */
.loading-text {
    color: $warning;
    text-style: italic;
}
"""
