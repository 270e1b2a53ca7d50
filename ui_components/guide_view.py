import streamlit as st

GUIDE_MARKDOWN = """
**1. Nhập thông tin**
- Chọn *Loại văn bản* và điền các trường liên quan. Các trường để trống sẽ được AI hiểu là “Không rõ”.
- Có thể đính kèm tệp PDF hoặc hình ảnh cho phần *Căn cứ ban hành văn bản* và *Văn bản, tư liệu, số liệu liên quan*. Tệp định dạng khác sẽ được bỏ qua.

**2. Soạn thảo**
- Nhấn **Soạn thảo văn bản**. Văn bản hiển thị dần ở khung bên phải và được lưu tự động kèm tiêu đề.

**3. Chỉnh sửa qua trò chuyện**
- Mở khung trò chuyện và mô tả điều muốn thay đổi. Mỗi câu trả lời là toàn bộ văn bản đã chỉnh sửa.

**4. Lịch sử lưu trữ**
- Xem lại, tiếp tục chỉnh sửa hoặc xóa các văn bản cũ trong tab **Lịch sử lưu trữ** (mỗi văn bản được tạo sẽ tự động lưu tại đây).
"""


@st.dialog("Hướng dẫn sử dụng", width="large")
def show_guide():
    st.markdown(GUIDE_MARKDOWN)
