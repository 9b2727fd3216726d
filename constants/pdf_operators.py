"""
PDF Operator Constants

Content stream operators written when painting redaction overlays and
composing reflowed pages. Organized by functional category according to the
PDF specification.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state

# ==============================================================================
# Color Operators (PDF spec 8.6.8)
# ==============================================================================
OP_SET_RGB_COLOR_FILL = b'rg'        # Set RGB color for non-stroking

# ==============================================================================
# Text Operators (PDF spec 9.3, 9.4)
# ==============================================================================
OP_BEGIN_TEXT = b'BT'            # Begin text object
OP_END_TEXT = b'ET'              # End text object
OP_SET_FONT = b'Tf'              # Set text font and size
OP_SET_HORIZ_SCALING = b'Tz'     # Set horizontal text scaling
OP_MOVE_TEXT = b'Td'             # Move text position
OP_SHOW_TEXT = b'Tj'             # Show a text string

# ==============================================================================
# Path Operators (PDF spec 8.5.2, 8.5.3)
# ==============================================================================
OP_RECTANGLE = b're'      # Append rectangle
OP_FILL = b'f'            # Fill path using nonzero winding number rule

# ==============================================================================
# Colors
# ==============================================================================
RGB_WHITE = (1, 1, 1)
RGB_BLACK = (0, 0, 0)
